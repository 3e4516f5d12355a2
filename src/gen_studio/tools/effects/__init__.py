"""
视频特效工具
"""
from .animals_caught_on_camera import AnimalsCaughtOnCameraTool

__all__ = ["AnimalsCaughtOnCameraTool"]
