"""
FastAPI 应用入口
"""
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from gen_studio.core import setup_logging, get_settings, get_logger
from gen_studio.core.database import init_db
from gen_studio.core.errors import ErrorKind, GenerationError
from gen_studio.api import api_router
from gen_studio.api.schemas import ApiResult
from gen_studio.tools import get_tool_registry
from gen_studio.tools.base import collect_field_errors

# 初始化日志
settings = get_settings()
setup_logging(settings.log_level, settings.log_file or None)

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    init_db()
    registry = get_tool_registry()
    logger.info(f"🚀 生成服务启动中，已注册工具: {', '.join(registry.supported_tools())}")
    yield
    logger.info("👋 生成服务关闭")


# 创建 FastAPI 应用
app = FastAPI(
    title="Gen Studio API",
    description="图片/视频生成任务的编排服务：积分、第三方任务、状态轮询与结果转存",
    version="0.1.0",
    debug=settings.debug,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(GenerationError)
async def generation_error_handler(request: Request, exc: GenerationError):
    logger.error(f"{request.method} {request.url.path} 失败: [{exc.kind.value}] {exc.message}")
    result = ApiResult.fail(exc.message, exc.kind, exc.field_errors or None)
    return JSONResponse(status_code=exc.status_code, content=result.model_dump(mode="json"))


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    field_errors = collect_field_errors(exc.errors())
    first_error = next(iter(field_errors.values()))[0] if field_errors else "基础参数校验失败"
    result = ApiResult.fail(first_error, ErrorKind.VALIDATION, field_errors)
    return JSONResponse(status_code=400, content=result.model_dump(mode="json"))


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(f"{request.method} {request.url.path} 未处理异常: {exc}", exc_info=exc)
    result = ApiResult.fail("服务器出现异常，请稍后重试", ErrorKind.INTERNAL)
    return JSONResponse(status_code=500, content=result.model_dump(mode="json"))


# 注册 API 路由
app.include_router(api_router)


@app.get("/")
async def root():
    """健康检查"""
    return {"status": "ok", "message": "Gen Studio API 运行中"}


@app.get("/health")
async def health():
    """健康检查"""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn

    logger.info(f"启动服务: http://{settings.api_host}:{settings.api_port}")
    uvicorn.run(
        "gen_studio.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
    )
