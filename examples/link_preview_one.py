import time

from fastapi import FastAPI
from fastapi.testclient import TestClient
from starlette.responses import HTMLResponse

from fastapi_block import BotsMiddleware, PrefetchMiddleware, with_user_agent

app = FastAPI()

PREVIEW_HTML = (
    "<html><head>"
    '<meta property="og:title" content="Shared article" />'
    "</head></html>"
)


@app.get("/article")
def article():
    return {"title": "Shared article", "body": "..."}


# Link-preview fetchers only need the Open Graph tags
app.add_middleware(PrefetchMiddleware, options=[with_user_agent("Chrome")])
app.add_middleware(BotsMiddleware, bot_handler=HTMLResponse(PREVIEW_HTML))

client = TestClient(app)


def test_link_preview_gets_open_graph_tags():
    response = client.get(
        "/article",
        headers={"User-Agent": "facebookexternalhit/1.1"},
    )
    assert response.status_code == 200
    assert 'og:title' in response.text


def test_chrome_prefetch_is_held_back():
    response = client.get(
        "/article",
        headers={"User-Agent": "Mozilla/5.0 Chrome/120.0"},
    )
    assert "window.location.reload();" in response.text


def test_chrome_with_aged_cookie_gets_article():
    aged = time.time_ns() - 2_000_000_000
    response = client.get(
        "/article",
        headers={
            "User-Agent": "Mozilla/5.0 Chrome/120.0",
            "Cookie": f"block-prefetch={aged}",
        },
    )
    assert response.json()["title"] == "Shared article"


def test_other_browsers_are_not_guarded():
    response = client.get(
        "/article",
        headers={"User-Agent": "Mozilla/5.0 Firefox/121.0"},
    )
    assert response.json()["title"] == "Shared article"


# python -m pytest examples/link_preview_one.py
