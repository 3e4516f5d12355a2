"""
配置管理 - 环境变量 / .env 统一加载
"""
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """应用配置"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # API 配置
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    debug: bool = True
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # 数据库配置
    database_url: str = "sqlite:///./data/gen_studio.db"
    # 轮询联表查询的超时与重试
    db_query_timeout: float = 10.0
    db_max_retries: int = 3
    db_retry_delay: float = 1.0

    # 日志配置
    log_level: str = "INFO"
    # 为空时只输出到控制台
    log_file: str = ""

    # Supabase 登录态（HS256 JWT）
    supabase_jwt_secret: str = ""
    jwt_algorithm: str = "HS256"
    jwt_audience: str = "authenticated"

    # 第三方生成平台
    replicate_api_token: str = ""
    gemini_api_token: str = Field(
        default="",
        validation_alias=AliasChoices("GEMINI_API_TOKEN", "GEMINI_API_KEY"),
    )
    api_core_token: str = ""
    third_party_timeout: float = 60.0

    # 各工具积分消耗
    ai_image_generator_points: int = 0
    veo3_fast_points: int = 10
    animals_caught_on_camera_points: int = 5

    # S3 兼容对象存储（Cloudflare R2）
    s3_endpoint_url: str = Field(
        default="",
        validation_alias=AliasChoices("S3_ENDPOINT_URL", "CLOUDFLARE_S3_URL"),
    )
    s3_region: str = "auto"
    s3_access_key_id: str = Field(
        default="",
        validation_alias=AliasChoices("S3_ACCESS_KEY_ID", "CLOUDFLARE_R2_ACCESS_KEY_ID"),
    )
    s3_secret_access_key: str = Field(
        default="",
        validation_alias=AliasChoices("S3_SECRET_ACCESS_KEY", "CLOUDFLARE_R2_SECRET_ACCESS_KEY"),
    )
    s3_bucket_name: str = Field(
        default="",
        validation_alias=AliasChoices("S3_BUCKET_NAME", "CLOUDFLARE_R2_BUCKET_NAME"),
    )
    s3_public_base_url: str = Field(
        default="",
        validation_alias=AliasChoices("S3_PUBLIC_BASE_URL", "CLOUDFLARE_R2_PUBLIC_URL"),
    )
    media_upload_path: str = "generator/record"

    # 客户端轮询默认值
    poll_interval: float = 5.0
    poll_max_attempts: int = 50

    # 新用户默认积分
    default_user_points: int = 10


@lru_cache()
def get_settings() -> Settings:
    """获取配置单例"""
    return Settings()
