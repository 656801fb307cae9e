"""
Docker Hoster 数据模型
"""

from dataclasses import dataclass
from typing import FrozenSet, Iterable


@dataclass(frozen=True)
class AddressRecord:
    """
    代表容器在一个网络上的地址记录

    属性:
        ip: 容器在该网络上的 IP 地址
        owner_name: 容器名称（已去掉开头的 /）
        aliases: 该 IP 对应的所有域名（集合，重复项会被合并）
    """

    ip: str
    owner_name: str
    aliases: FrozenSet[str]

    def __post_init__(self) -> None:
        if not self.ip:
            raise ValueError(f"容器 {self.owner_name} 的地址记录缺少 IP")
        if not self.aliases:
            raise ValueError(f"地址记录 {self.ip} 至少需要一个别名")

    @classmethod
    def build(cls, ip: str, owner_name: str, aliases: Iterable[str]) -> "AddressRecord":
        """
        创建记录，别名集合总是包含容器名，空字符串会被丢弃
        """
        names = {alias for alias in aliases if alias}
        names.add(owner_name)
        return cls(ip=ip, owner_name=owner_name, aliases=frozenset(names))

    def to_hosts_line(self) -> str:
        """
        转换为 hosts 文件行格式

        格式: <IP>    <别名1>   <别名2>   ...

        别名按字母排序，仅为了输出可复现，顺序本身没有含义。

        返回:
            格式化的 hosts 文件行
        """
        return f"{self.ip}    {'   '.join(sorted(self.aliases))}"

    def __str__(self) -> str:
        return f"{self.ip} -> {', '.join(sorted(self.aliases))} ({self.owner_name})"
