import uvicorn

from drawpad.config import settings

if __name__ == "__main__":
    print(f"Server running on port {settings.port}")
    uvicorn.run("drawpad.main:app", host=settings.host, port=settings.port)
