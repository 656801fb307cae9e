"""
Docker 事件处理和监控模块
"""

import logging
import threading
from typing import Any, Dict, Optional, Set

import docker
from docker.errors import DockerException

from hostsync.errors import HostsFileError, StreamError
from hostsync.reconciler import HostsReconciler


class DockerEventHandler:
    """
    按顺序消费 Docker 事件流并分发给 HostsReconciler

    start 触发解析和渲染；stop、die、destroy 触发移除和渲染。
    其他事件被忽略。每个事件最多触发一次渲染。
    """

    START_EVENTS: Set[str] = {'start'}
    STOP_EVENTS: Set[str] = {'stop', 'die', 'destroy'}

    def __init__(
        self,
        client: docker.DockerClient,
        reconciler: HostsReconciler,
        logger: logging.Logger
    ):
        """
        初始化事件处理器

        参数:
            client: Docker 客户端实例
            reconciler: 注册表和 hosts 文件同步器
            logger: 日志记录器实例
        """
        self.client = client
        self.reconciler = reconciler
        self.logger = logger
        self.stopped = threading.Event()
        self._stream = None

    @property
    def running(self) -> bool:
        return not self.stopped.is_set()

    def listen_events(self) -> None:
        """
        监听 Docker 事件并处理容器变化

        阻塞直到事件流结束或调用 stop()。

        异常:
            StreamError: 如果事件订阅失败
        """
        self.logger.info("启动 Docker 事件监听器")

        try:
            self._stream = self.client.events(decode=True)
            if not self.running:
                self._close_stream()
                return

            for event in self._stream:
                if not self.running:
                    break
                self.handle_event(event)

        except (DockerException, OSError) as e:
            if not self.running:
                self.logger.debug(f"停止后事件流关闭: {e}")
                return
            self.logger.error(f"事件监听器中的 Docker API 错误: {e}")
            raise StreamError(f"Docker 事件流失败: {e}") from e
        finally:
            self._stream = None

        if self.running:
            self.logger.info("Docker 事件流已结束")
        else:
            self.logger.info("事件监听器已停止")

    def handle_event(self, event: Dict[str, Any]) -> None:
        """
        处理单个 Docker 事件

        hosts 文件写入失败只记录日志，注册表已经是最新状态，
        下一个事件会重新渲染。
        """
        # 只处理容器事件
        if event.get('Type') != 'container':
            return

        action = event.get('Action')
        if action not in self.START_EVENTS and action not in self.STOP_EVENTS:
            return

        container_id = self._container_id(event)
        if not container_id:
            self.logger.warning(f"{action} 事件缺少容器 ID，忽略")
            return

        container_name = event.get('Actor', {}).get('Attributes', {}).get('name', 'unknown')
        self.logger.info(
            f"容器事件: {action} - {container_name} ({container_id[:12]})"
        )

        try:
            if action in self.START_EVENTS:
                self.reconciler.on_start(container_id)
            else:
                self.reconciler.on_stop(container_id)
        except HostsFileError as e:
            self.logger.error(f"{action} 事件后更新 hosts 文件时出错: {e}")

    @staticmethod
    def _container_id(event: Dict[str, Any]) -> Optional[str]:
        return event.get('Actor', {}).get('ID') or event.get('id')

    def _close_stream(self) -> None:
        stream = self._stream
        if stream is None:
            return
        try:
            stream.close()
        except (DockerException, OSError, AttributeError) as e:
            # 已读完的流没有底层 socket
            self.logger.debug(f"关闭事件流时出错: {e}")

    def stop(self) -> None:
        """停止监听事件，关闭事件流使阻塞的读取返回"""
        self.stopped.set()
        self.logger.info("正在停止事件监听器...")
        self._close_stream()
