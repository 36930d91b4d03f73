import uvicorn

from sweetshop.config import settings


def main():
    uvicorn.run("sweetshop.main:app", host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    main()
