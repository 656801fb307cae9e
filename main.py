#!/usr/bin/env python3
"""
hostsync - 源码目录下的启动脚本

安装后请使用 `hostsync` 命令或 `python -m hostsync`。
"""

import sys
from pathlib import Path

# 将当前目录添加到路径以导入 hostsync 模块
sys.path.insert(0, str(Path(__file__).parent))

from hostsync.__main__ import main


if __name__ == '__main__':
    main()
