import uvicorn

from cinema_api import config

if __name__ == "__main__":
    uvicorn.run("cinema_api.main:app", host=config.HOST, port=config.PORT)
