"""
hostsync - 自动把运行中 Docker 容器的地址同步到 /etc/hosts
"""

__version__ = "1.1.0"
__author__ = "Docker Hoster Project"

from hostsync.app import DockerHoster
from hostsync.config import Config
from hostsync.errors import HostsFileError, InspectionError, StreamError
from hostsync.models import AddressRecord

__all__ = [
    "DockerHoster",
    "Config",
    "AddressRecord",
    "HostsFileError",
    "InspectionError",
    "StreamError",
]
