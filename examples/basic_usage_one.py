from datetime import timedelta

from fastapi import FastAPI
from fastapi.testclient import TestClient
from starlette.responses import PlainTextResponse

from fastapi_block import bots, prefetch, with_bot_handler, with_max_age, with_no_cache

app = FastAPI()


@app.get("/")
def index():
    return {"message": "Welcome, human"}


# Bots get a short notice, everyone else goes through the prefetch guard
application = bots(
    prefetch(app, with_max_age(timedelta(seconds=1)), with_no_cache(True)),
    with_bot_handler(PlainTextResponse("Nothing to see here", status_code=403)),
)

client = TestClient(application)


def test_bot_is_turned_away():
    response = client.get("/", headers={"User-Agent": "Googlebot/2.1"})
    assert response.status_code == 403
    assert response.text == "Nothing to see here"


def test_first_visit_gets_confirmation_page():
    response = client.get("/", headers={"User-Agent": "Mozilla/5.0 Firefox/121.0"})
    assert response.status_code == 200
    assert "document.cookie = 'block-prefetch=" in response.text
    assert "max-age=1; path=/" in response.text
    assert response.headers["cache-control"] == "no-cache, no-store, must-revalidate"


# python -m pytest examples/basic_usage_one.py
