"""Start the dev server."""

import logging

import uvicorn


def main():
    logging.basicConfig(level=logging.INFO)
    uvicorn.run("app.main:app", reload=True, timeout_graceful_shutdown=1)


if __name__ == "__main__":
    main()
