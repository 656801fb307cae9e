"""
Docker Hoster 错误类型
"""

from typing import Optional


class HosterError(Exception):
    """所有 hostsync 错误的基类"""


class InspectionError(HosterError):
    """
    Docker 无法返回容器配置

    跳过该容器，继续处理其他容器。
    """

    def __init__(self, container_id: str, reason: Optional[str] = None):
        self.container_id = container_id
        message = f"无法检查容器 {container_id[:12]}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class HostsFileError(HosterError, OSError):
    """hosts 文件无法读取、写入或替换"""


class StreamError(HosterError):
    """Docker 事件订阅失败（致命）"""
