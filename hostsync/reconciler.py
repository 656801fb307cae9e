"""
容器地址注册表与 hosts 文件同步模块
"""

import logging
import threading
from typing import Dict, Iterable, List

from hostsync.errors import HostsFileError, InspectionError
from hostsync.hosts_manager import HostsFileManager
from hostsync.inspector import AddressResolver
from hostsync.models import AddressRecord


class HostsReconciler:
    """
    维护容器 ID -> 地址记录的注册表，并把它渲染到 hosts 文件

    注册表是管理区内容的唯一来源，从不从文件中读回。
    所有修改注册表和写文件的操作都在同一把锁下进行。
    """

    def __init__(
        self,
        resolver: AddressResolver,
        hosts_manager: HostsFileManager,
        logger: logging.Logger
    ):
        self.resolver = resolver
        self.hosts_manager = hosts_manager
        self.logger = logger
        self.registry: Dict[str, List[AddressRecord]] = {}
        self.lock = threading.RLock()

    def snapshot(self) -> Dict[str, List[AddressRecord]]:
        """返回注册表的副本"""
        with self.lock:
            return {cid: list(records) for cid, records in self.registry.items()}

    def seed(self, container_ids: Iterable[str]) -> None:
        """
        解析所有给定容器并加入注册表，不渲染

        单个容器解析失败只会被记录并跳过。

        参数:
            container_ids: 运行中容器的 ID
        """
        resolved: Dict[str, List[AddressRecord]] = {}

        for container_id in container_ids:
            try:
                resolved[container_id] = self.resolver.resolve(container_id)
            except InspectionError as e:
                self.logger.warning(f"跳过容器: {e}")
                continue

        with self.lock:
            self.registry.update(resolved)

        self.logger.info(f"初始扫描: 已解析 {len(resolved)} 个容器")

    def on_start(self, container_id: str) -> None:
        """
        容器启动：解析地址并更新注册表，然后渲染

        异常:
            HostsFileError: 如果渲染失败（注册表已经更新）
        """
        try:
            records = self.resolver.resolve(container_id)
        except InspectionError as e:
            self.logger.warning(f"忽略启动事件: {e}")
            return

        with self.lock:
            self.registry[container_id] = records
            self.render()

        for record in records:
            self.logger.info(f"已添加主机记录: {record}")

    def on_stop(self, container_id: str) -> None:
        """
        容器停止/退出/销毁：从注册表移除并渲染

        不在注册表中的容器直接忽略，不会重写文件。

        异常:
            HostsFileError: 如果渲染失败（注册表已经更新）
        """
        with self.lock:
            records = self.registry.pop(container_id, None)
            if records is None:
                self.logger.debug(f"容器 {container_id[:12]} 不在注册表中，忽略")
                return
            self.render()

        for record in records:
            self.logger.info(f"已移除主机记录: {record}")

    def render(self) -> None:
        """
        把当前注册表写入 hosts 文件

        异常:
            HostsFileError: 如果文件无法读取、写入或替换
        """
        with self.lock:
            self.hosts_manager.render(self.registry)

    def shutdown(self) -> None:
        """
        清空注册表并渲染，从而移除整个管理区

        渲染失败只记录日志，不抛出异常。
        """
        with self.lock:
            self.registry = {}
            try:
                self.render()
            except HostsFileError as e:
                self.logger.error(f"清理 hosts 文件失败: {e}")
