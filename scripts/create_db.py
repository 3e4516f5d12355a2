"""
创建数据库表
"""
from gen_studio.core import get_settings
from gen_studio.core.database import create_db_engine, init_db

settings = get_settings()

if __name__ == "__main__":
    # 创建引擎
    engine = create_db_engine(settings.database_url, echo=True)

    # 创建所有表
    init_db(engine)

    print("✅ 数据库表创建完成")
