import uvicorn

from config.settings import get_settings


if __name__ == "__main__":
    settings = get_settings()
    print(f"[AI Character Server] Starting on http://{settings.host}:{settings.port}...")
    uvicorn.run("app.main:app", host=settings.host, port=settings.port, reload=False)
