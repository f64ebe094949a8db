import uvicorn

from dbexplorer.config import settings

if __name__ == "__main__":
    uvicorn.run("dbexplorer.main:app", host=settings.backend_host, port=settings.backend_port)
