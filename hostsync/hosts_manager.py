"""
Hosts 文件管理模块，支持原子性更新

文件按原始字节处理，只按 b"\n" 分行，管理区之前的内容逐字节保留
（包括 CRLF 换行、非 UTF-8 注释和其他控制字符）。
"""

import logging
import os
import stat
import tempfile
import threading
from pathlib import Path
from typing import FrozenSet, List, Mapping, Sequence, Tuple

from hostsync.errors import HostsFileError
from hostsync.models import AddressRecord

START_MARKER = b"#-----------Docker-Hoster-Domains----------"
END_MARKER = b"#-----Do-not-add-hosts-after-this-line-----"


def _is_marker(line: bytes, marker: bytes) -> bool:
    # 被 CRLF 编辑器保存过的标记行带有结尾的 \r
    return line.rstrip(b"\r") == marker


def split_preserved_prefix(lines: Sequence[bytes]) -> List[bytes]:
    """
    截取管理区之前的内容，并去掉末尾的空行

    参数:
        lines: hosts 文件按 b"\\n" 切分后的所有行

    返回:
        需要原样保留的行
    """
    prefix = list(lines)
    for i, line in enumerate(prefix):
        if _is_marker(line, START_MARKER):
            prefix = prefix[:i]
            break

    while prefix and not prefix[-1].strip():
        prefix.pop()

    return prefix


def parse_managed_section(lines: Sequence[bytes]) -> List[Tuple[str, FrozenSet[str]]]:
    """
    解析管理区中的条目

    参数:
        lines: hosts 文件按 b"\\n" 切分后的所有行

    返回:
        (ip, 别名集合) 列表，按文件中的顺序
    """
    entries = []
    inside = False

    for line in lines:
        if _is_marker(line, START_MARKER):
            inside = True
            continue
        if _is_marker(line, END_MARKER):
            break
        if not inside:
            continue

        fields = line.decode("utf-8", errors="replace").split()
        if len(fields) < 2 or fields[0].startswith("#"):
            continue
        entries.append((fields[0], frozenset(fields[1:])))

    return entries


def render_content(prefix: Sequence[bytes], registry: Mapping[str, Sequence[AddressRecord]]) -> bytes:
    """
    生成完整的 hosts 文件内容

    注册表为空时不输出管理区（包括标记行）。
    """
    lines = list(prefix)

    if registry:
        lines.append(b"")  # 空行分隔符
        lines.append(START_MARKER)
        for records in registry.values():
            for record in records:
                lines.append(record.to_hosts_line().encode("utf-8"))
        lines.append(END_MARKER)
        lines.append(b"")

    if not lines:
        return b""
    return b"\n".join(lines) + b"\n"

class HostsFileManager:
    """
    管理 hosts 文件中 Docker Hoster 区段的原子性更新

    管理区以 START_MARKER 开始、END_MARKER 结束，每次渲染时完整重建；
    管理区之前的内容原样保留。
    使用原子性文件操作（临时文件 + 重命名）防止文件损坏。
    """

    def __init__(self, hosts_path: str, logger: logging.Logger):
        """
        初始化 hosts 文件管理器

        参数:
            hosts_path: hosts 文件路径
            logger: 日志记录器实例
        """
        self.hosts_path = Path(hosts_path)
        self.logger = logger
        self.lock = threading.Lock()

    def read_lines(self) -> List[bytes]:
        """
        以字节形式读取 hosts 文件，只按 b"\\n" 分行

        异常:
            HostsFileError: 如果文件不存在或无法读取
        """
        try:
            return self.hosts_path.read_bytes().split(b"\n")
        except PermissionError as e:
            self.logger.error(f"读取 hosts 文件权限被拒绝: {self.hosts_path}")
            raise HostsFileError(f"无法读取 hosts 文件 {self.hosts_path}: {e}") from e
        except OSError as e:
            self.logger.error(f"读取 hosts 文件时出错: {e}")
            raise HostsFileError(f"无法读取 hosts 文件 {self.hosts_path}: {e}") from e

    def read_managed_entries(self) -> List[Tuple[str, FrozenSet[str]]]:
        """
        读取当前文件管理区中的条目

        返回:
            (ip, 别名集合) 列表
        """
        return parse_managed_section(self.read_lines())

    def render(self, registry: Mapping[str, Sequence[AddressRecord]]) -> None:
        """
        根据注册表原子性重写 hosts 文件的管理区

        相同的注册表重复渲染会得到完全相同的文件内容。

        参数:
            registry: 容器 ID -> 地址记录列表

        异常:
            HostsFileError: 如果文件无法读取、写入或替换
        """
        with self.lock:
            prefix = split_preserved_prefix(self.read_lines())
            content = render_content(prefix, registry)
            self._write_atomic(content)

        count = sum(len(records) for records in registry.values())
        if count:
            self.logger.info(f"已更新 {count} 条 host 记录")
        else:
            self.logger.info("已移除所有 docker-hoster 条目")

    def _write_atomic(self, content: bytes) -> None:
        try:
            mode = stat.S_IMODE(os.stat(self.hosts_path).st_mode)

            # 写入临时文件（同一目录）
            temp_fd, temp_path = tempfile.mkstemp(
                dir=self.hosts_path.parent,
                prefix=f".{self.hosts_path.name}.tmp."
            )

            try:
                with os.fdopen(temp_fd, "wb") as f:
                    f.write(content)
                os.chmod(temp_path, mode)

                # 原子性替换（同一文件系统内有效）
                os.replace(temp_path, self.hosts_path)

            except BaseException:
                # 出错或被信号中断时清理临时文件
                if os.path.exists(temp_path):
                    os.unlink(temp_path)
                raise

        except PermissionError as e:
            self.logger.error(
                f"写入 hosts 文件权限被拒绝: {self.hosts_path}. "
                "请确保进程具有适当的权限。"
            )
            raise HostsFileError(f"无法写入 hosts 文件 {self.hosts_path}: {e}") from e
        except OSError as e:
            self.logger.error(f"更新 hosts 文件失败: {e}")
            raise HostsFileError(f"无法更新 hosts 文件 {self.hosts_path}: {e}") from e
