import os

import uvicorn

from app.config.settings import settings


if __name__ == "__main__":
    # 明确默认禁用 reload，避免子进程导致导出线程池被重复创建
    enable_reload = os.getenv("ENABLE_RELOAD", "false").lower() == "true"

    try:
        uvicorn.run(
            "app.main:app",
            host=settings.HOST,
            port=settings.PORT,
            reload=enable_reload,
            reload_excludes=["*.pyc", "__pycache__"] if enable_reload else None,
            workers=1,
            log_level=os.getenv("UVICORN_LOG_LEVEL", settings.LOG_LEVEL.lower()),
        )
    except KeyboardInterrupt:
        pass
