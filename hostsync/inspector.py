"""
容器检查和地址记录提取模块
"""

import logging
from typing import Any, Dict, List, Optional

import docker
from docker.errors import DockerException

from hostsync.config import Config
from hostsync.errors import InspectionError
from hostsync.models import AddressRecord


class AddressResolver:
    """
    从 Docker 容器配置中提取地址记录

    支持每个容器多个网络、网络别名、默认 bridge IP 和基于标签的过滤。
    本身不保存任何状态。
    """

    def __init__(self, client: docker.DockerClient, config: Config, logger: logging.Logger):
        """
        初始化地址解析器

        参数:
            client: Docker 客户端实例
            config: 应用配置
            logger: 日志记录器实例
        """
        self.client = client
        self.config = config
        self.logger = logger

    def should_process_container(self, name: str, labels: Optional[Dict[str, str]]) -> bool:
        """
        根据标签过滤检查是否应该处理此容器

        参数:
            name: 容器名
            labels: 容器标签

        返回:
            如果应该处理容器返回 True，否则返回 False
        """
        if not self.config.enable_label_filter:
            return True

        label_value = (labels or {}).get(self.config.label_key)
        should_process = label_value == self.config.label_value

        if not should_process:
            self.logger.debug(f"容器 {name} 被标签过滤器跳过")

        return should_process

    def inspect(self, container_id: str) -> Dict[str, Any]:
        """
        获取容器的 inspect 数据

        异常:
            InspectionError: 如果 Docker 无法返回该容器的配置
        """
        try:
            return self.client.containers.get(container_id).attrs
        except DockerException as e:
            raise InspectionError(container_id, str(e)) from e
        except OSError as e:
            # requests 的连接错误是 OSError 的子类
            raise InspectionError(container_id, str(e)) from e

    def resolve(self, container_id: str) -> List[AddressRecord]:
        """
        解析容器的所有地址记录

        每个声明了别名的网络产生一条记录，别名集合 = 网络别名 ∪ {容器名, 主机名}。
        没有别名的网络会被跳过。如果容器有默认 bridge IP，额外产生一条
        别名为 {容器名, 主机名} 的记录。

        参数:
            container_id: 容器 ID

        返回:
            AddressRecord 列表，没有可用 IP 时为空列表

        异常:
            InspectionError: 如果无法获取或解析容器配置
        """
        info = self.inspect(container_id)

        try:
            return self._extract_records(info)
        except (KeyError, TypeError, AttributeError) as e:
            raise InspectionError(container_id, f"inspect 数据缺少预期字段: {e}") from e

    def _extract_records(self, info: Dict[str, Any]) -> List[AddressRecord]:
        config = info["Config"]
        network_settings = info["NetworkSettings"]

        container_name = info["Name"].lstrip("/")
        hostname = config.get("Hostname") or ""
        # 设置了 Domainname 时，完整域名作为额外的别名，主机名本身保留
        fqdn = ""
        if hostname and config.get("Domainname"):
            fqdn = f"{hostname}.{config['Domainname']}"

        if not self.should_process_container(container_name, config.get("Labels")):
            return []

        records: List[AddressRecord] = []

        networks = network_settings.get("Networks") or {}
        for network_name, network_data in networks.items():
            aliases = network_data.get("Aliases")
            if not aliases:
                continue

            ip_address = network_data.get("IPAddress")
            if not ip_address:
                self.logger.debug(
                    f"容器 {container_name} 在 {network_name} 上没有 IP"
                )
                continue

            records.append(AddressRecord.build(
                ip=ip_address,
                owner_name=container_name,
                aliases=[*aliases, container_name, hostname, fqdn]
            ))

        # 默认 bridge 网络的旧式 IP
        default_ip = network_settings.get("IPAddress")
        if default_ip:
            records.append(AddressRecord.build(
                ip=default_ip,
                owner_name=container_name,
                aliases=[container_name, hostname, fqdn]
            ))

        self.logger.debug(
            f"容器 {container_name} 解析出 {len(records)} 条地址记录"
        )
        return records
