import os

import uvicorn

from api.index import app


def main():
    # access log is off: the query string carries the school code
    uvicorn.run(app, host=os.environ.get("HOST", "127.0.0.1"),
                port=int(os.environ.get("PORT", "8000")), access_log=False)


if __name__ == "__main__":
    main()
