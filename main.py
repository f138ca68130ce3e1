"""Local development entrypoint.

Serves the message API with the built-in server. Threads share one
process, so the temporary card/draw state stays consistent.
"""

from bingo import create_app

app = create_app()


if __name__ == "__main__":
    app.run(host="127.0.0.1", port=8000, debug=False, threaded=True)
