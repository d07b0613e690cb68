"""Serverless entry point (Vercel Python runtime): exposes the ASGI app."""
import sys
from pathlib import Path

# 确保项目根目录在Python路径中
project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

from chatbridge_proxy.main import app

__all__ = ["app"]
