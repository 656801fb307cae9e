"""
hostsync - 主入口点

自动把运行中 Docker 容器的 IP 和别名同步到 hosts 文件。
用法: python -m hostsync [--hosts PATH] [--socket PATH]
"""

import signal
import sys
from typing import Optional, Sequence

from hostsync.app import DockerHoster
from hostsync.config import Config
from hostsync.errors import HostsFileError, StreamError


def main(argv: Optional[Sequence[str]] = None) -> None:
    """主入口点，带信号处理"""

    # 从命令行参数和环境变量加载配置（--help/--version 在这里退出）
    config = Config.from_args(argv)

    # 初始化 Docker Hoster
    try:
        hoster = DockerHoster(config)
    except Exception as e:
        print(f"初始化 Docker Hoster 失败: {e}", file=sys.stderr)
        sys.exit(1)

    # 定义信号处理器以实现优雅关闭
    def signal_handler(signum: int, frame) -> None:
        """处理关闭信号：先停止事件循环，清理在循环退出后进行"""
        signal_name = signal.Signals(signum).name
        hoster.logger.info(f"收到信号 {signal_name}，正在关闭...")
        hoster.stop()
        sys.exit(0)

    # 注册信号处理器
    signal.signal(signal.SIGTERM, signal_handler)
    signal.signal(signal.SIGINT, signal_handler)

    exit_code = 0
    try:
        hoster.run()
    except SystemExit as e:
        exit_code = e.code or 0
    except KeyboardInterrupt:
        hoster.logger.info("被用户中断")
    except (StreamError, HostsFileError) as e:
        hoster.logger.error(f"致命错误: {e}")
        exit_code = 1
    except Exception as e:
        hoster.logger.error(f"致命错误: {e}", exc_info=True)
        exit_code = 1
    finally:
        # 清理期间忽略重复的信号
        signal.signal(signal.SIGTERM, signal.SIG_IGN)
        signal.signal(signal.SIGINT, signal.SIG_IGN)
        hoster.cleanup()

    sys.exit(exit_code)


if __name__ == '__main__':
    main()
