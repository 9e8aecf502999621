import uvicorn

from bug_tracker.config import settings


def main():
    uvicorn.run("bug_tracker.main:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
