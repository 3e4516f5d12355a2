"""
数据库连接管理 - 统一管理数据库连接
"""
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine

from gen_studio.core.config import get_settings


def create_db_engine(database_url: str, echo: bool = False):
    """
    创建数据库引擎

    SQLite 需要跨线程使用（服务层通过 asyncio.to_thread 访问数据库），
    内存库额外使用 StaticPool 保证所有会话落在同一个连接上
    """
    if not database_url.startswith("sqlite"):
        return create_engine(database_url, echo=echo, pool_pre_ping=True)

    kwargs = {"connect_args": {"check_same_thread": False}}
    if database_url in ("sqlite://", "sqlite:///:memory:"):
        kwargs["poolclass"] = StaticPool
    return create_engine(database_url, echo=echo, **kwargs)


# 创建全局数据库引擎
_settings = get_settings()
engine = create_db_engine(_settings.database_url)


def init_db(target_engine=None) -> None:
    """创建所有表"""
    # 确保模型已注册到 metadata
    import gen_studio.models  # noqa: F401

    SQLModel.metadata.create_all(target_engine or engine)


__all__ = ["engine", "create_db_engine", "init_db"]
