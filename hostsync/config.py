"""
配置管理模块，支持环境变量和命令行参数
"""

import argparse
import os
from dataclasses import dataclass
from typing import Optional, Sequence

DEFAULT_HOSTS_PATH = "/etc/hosts"
DEFAULT_DOCKER_SOCKET = "/var/run/docker.sock"


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() == "true"


@dataclass
class Config:
    """应用配置类，从环境变量和命令行参数加载配置"""

    hosts_file_path: str = DEFAULT_HOSTS_PATH
    docker_socket: str = DEFAULT_DOCKER_SOCKET
    docker_host: Optional[str] = None
    enable_label_filter: bool = False
    label_key: str = "hoster.enable"
    label_value: str = "true"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Config":
        """
        从环境变量加载配置

        环境变量说明:
            HOSTS_FILE: hosts 文件路径 (默认: /etc/hosts)
            DOCKER_SOCKET: Docker 守护进程 socket 路径 (默认: /var/run/docker.sock)
            DOCKER_HOST: Docker 守护进程 URL，优先于 DOCKER_SOCKET (默认: 未设置)
            ENABLE_LABEL_FILTER: 启用容器标签过滤 (默认: false)
            LABEL_KEY: 过滤标签键 (默认: hoster.enable)
            LABEL_VALUE: 过滤标签值 (默认: true)
            LOG_LEVEL: 日志级别 (默认: INFO)
        """
        return cls(
            hosts_file_path=os.getenv("HOSTS_FILE", DEFAULT_HOSTS_PATH),
            docker_socket=os.getenv("DOCKER_SOCKET", DEFAULT_DOCKER_SOCKET),
            docker_host=os.getenv("DOCKER_HOST") or None,
            enable_label_filter=_env_flag("ENABLE_LABEL_FILTER"),
            label_key=os.getenv("LABEL_KEY", "hoster.enable"),
            label_value=os.getenv("LABEL_VALUE", "true"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper()
        )

    @classmethod
    def from_args(cls, argv: Optional[Sequence[str]] = None) -> "Config":
        """
        从命令行参数加载配置，未指定的参数使用环境变量的值

        --help 和 --version 会直接打印信息并退出（SystemExit）。

        参数:
            argv: 命令行参数列表，None 表示使用 sys.argv

        返回:
            配置实例
        """
        env = cls.from_env()
        parser = build_parser(env)
        args = parser.parse_args(argv)

        return cls(
            hosts_file_path=args.hosts,
            docker_socket=args.socket,
            docker_host=env.docker_host,
            enable_label_filter=args.label_filter,
            label_key=env.label_key,
            label_value=env.label_value,
            log_level=args.log_level.upper()
        )

    @property
    def docker_base_url(self) -> str:
        """Docker 客户端连接地址"""
        if self.docker_host:
            return self.docker_host
        return f"unix://{self.docker_socket}"

    def validate(self) -> None:
        """验证配置是否有效"""
        valid_log_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if self.log_level not in valid_log_levels:
            raise ValueError(
                f"无效的 LOG_LEVEL: {self.log_level}. "
                f"必须是以下之一: {', '.join(sorted(valid_log_levels))}"
            )
        if not self.hosts_file_path:
            raise ValueError("hosts 文件路径不能为空")


def build_parser(defaults: Config) -> argparse.ArgumentParser:
    """
    构建命令行解析器

    参数:
        defaults: 提供默认值的配置（通常来自环境变量）
    """
    from hostsync import __version__

    parser = argparse.ArgumentParser(
        prog="hostsync",
        description="Synchronize running docker container IPs with the host /etc/hosts file.",
        epilog="Example: sudo hostsync --hosts /etc/hosts --socket /var/run/docker.sock"
    )
    parser.add_argument(
        "--hosts",
        default=defaults.hosts_file_path,
        help=f"Path to the hosts file (default: {defaults.hosts_file_path})"
    )
    parser.add_argument(
        "--socket",
        default=defaults.docker_socket,
        help=f"Path to the Docker socket (default: {defaults.docker_socket})"
    )
    parser.add_argument(
        "--label-filter",
        action="store_true",
        default=defaults.enable_label_filter,
        help="Only register containers carrying the filter label"
    )
    parser.add_argument(
        "--log-level",
        default=defaults.log_level,
        help=f"Logging level (default: {defaults.log_level})"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"hostsync version {__version__}"
    )
    return parser
