"""
Docker Hoster 主应用模块
"""

import logging
import sys
from typing import List, Optional

import docker
from docker.errors import DockerException

from hostsync.config import Config
from hostsync.errors import StreamError
from hostsync.events import DockerEventHandler
from hostsync.hosts_manager import HostsFileManager
from hostsync.inspector import AddressResolver
from hostsync.reconciler import HostsReconciler


class DockerHoster:
    """
    主应用控制器，协调所有组件

    管理 Docker Hoster 应用的生命周期：
    - 初始化 Docker 客户端和组件
    - 启动时扫描现有容器并写入 hosts 文件
    - 监控 Docker 事件以处理容器变化
    - 关闭时移除 hosts 文件中的管理区
    """

    def __init__(self, config: Config, client: Optional[docker.DockerClient] = None):
        """
        初始化 Docker Hoster 应用

        参数:
            config: 应用配置
            client: 可选的 Docker 客户端，默认根据配置创建

        异常:
            DockerException: 如果无法连接到 Docker 守护进程
            ValueError: 如果配置无效
        """
        self.config = config
        self.config.validate()

        self.logger = self._setup_logging()

        # 初始化 Docker 客户端
        try:
            if client is None:
                self.logger.info(f"正在连接到 Docker: {config.docker_base_url}")
                client = docker.DockerClient(base_url=config.docker_base_url)

            # 测试连接
            client.ping()
            self.logger.info("成功连接到 Docker 守护进程")

        except DockerException as e:
            self.logger.error(f"连接到 Docker 守护进程失败: {e}")
            self.logger.error(
                "请确保 Docker 正在运行且 socket 可访问。"
                "如果使用自定义 socket，请检查 --socket 参数或 DOCKER_HOST 环境变量。"
            )
            raise

        self.client = client

        # 初始化组件
        self.resolver = AddressResolver(self.client, config, self.logger)
        self.hosts_manager = HostsFileManager(
            config.hosts_file_path,
            self.logger
        )
        self.reconciler = HostsReconciler(
            self.resolver,
            self.hosts_manager,
            self.logger
        )
        self.event_handler = DockerEventHandler(
            self.client,
            self.reconciler,
            self.logger
        )

    def _setup_logging(self) -> logging.Logger:
        """
        配置日志系统

        返回:
            配置好的日志记录器实例
        """
        logger = logging.getLogger('hostsync')
        logger.setLevel(self.config.log_level)

        # 避免重复的处理器
        if logger.handlers:
            return logger

        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(self.config.log_level)

        # 格式: 时间戳 - 名称 - 级别 - 消息
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        handler.setFormatter(formatter)

        logger.addHandler(handler)
        return logger

    def list_running_containers(self) -> List[str]:
        """
        列出所有运行中容器的 ID

        使用 sparse 列表，不逐个 inspect；列出后立即退出的容器在 seed 中被跳过。

        异常:
            StreamError: 如果 Docker API 调用失败
        """
        try:
            return [c.id for c in self.client.containers.list(all=False, sparse=True)]
        except (DockerException, OSError) as e:
            self.logger.error(f"列出容器时 Docker API 错误: {e}")
            raise StreamError(f"无法列出运行中的容器: {e}") from e

    def initialize(self) -> None:
        """
        初始化：扫描所有运行中的容器并构建初始 hosts 文件

        异常:
            HostsFileError: 如果初始渲染失败
            StreamError: 如果无法列出容器
        """
        self.logger.info("=" * 60)
        self.logger.info("Docker Hoster 启动中...")
        self.logger.info(f"Hosts 文件: {self.config.hosts_file_path}")
        self.logger.info(f"标签过滤: {self.config.enable_label_filter}")
        if self.config.enable_label_filter:
            self.logger.info(
                f"过滤条件: {self.config.label_key}={self.config.label_value}"
            )
        self.logger.info("=" * 60)

        stale = self.hosts_manager.read_managed_entries()
        if stale:
            self.logger.info(f"发现上次运行遗留的 {len(stale)} 条主机记录，将被重建")

        container_ids = self.list_running_containers()
        self.logger.debug(f"发现 {len(container_ids)} 个运行中的容器")

        self.reconciler.seed(container_ids)
        self.reconciler.render()

        snapshot = self.reconciler.snapshot()
        records = [record for entries in snapshot.values() for record in entries]
        if records:
            self.logger.info(f"已添加 {len(records)} 条主机记录:")
            for record in records:
                self.logger.info(f"  • {record}")
        else:
            self.logger.info("没有要添加的主机条目")

    def run(self) -> None:
        """
        启动主事件循环

        初始化应用并开始监听 Docker 事件。
        阻塞直到事件流结束或被停止。
        """
        self.initialize()
        self.logger.info("正在监听 Docker 事件...")
        self.event_handler.listen_events()

    def stop(self) -> None:
        """停止事件监听（可在信号处理器中调用）"""
        self.event_handler.stop()

    def cleanup(self) -> None:
        """
        清理：停止事件监听器并移除所有 docker-hoster 条目

        在优雅关闭期间调用，以恢复 hosts 文件。不会抛出异常。
        """
        self.logger.info("正在关闭 Docker Hoster...")

        self.stop()
        self.reconciler.shutdown()

        try:
            self.client.close()
        except (DockerException, OSError) as e:
            self.logger.error(f"关闭 Docker 客户端时出错: {e}")

        self.logger.info("清理完成")
