from fastapi.testclient import TestClient

from unitprice.api import app
from unitprice.config import ANNOTATION_CLASS


client = TestClient(app)

PAGE = (
    "<html><body><div class='product'><h3>Havregryn</h3>"
    "<span>1,5 kg</span><span class='price'>24,90 kr</span></div></body></html>"
)


def test_health_endpoint():
    resp = client.get("/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data == {"status": "healthy"}


def test_annotate_html_returns_annotated_page():
    resp = client.post("/annotate", json={"html": PAGE})
    assert resp.status_code == 200
    data = resp.json()
    assert data["candidates"] == 1
    assert ANNOTATION_CLASS in data["html"]
    assert data["annotations"] == [
        {
            "price_text": "24,90 kr",
            "weight_text": "1,5 kg",
            "unit_price": "~16.60 / kg",
            "price": 24.9,
            "weight": 1.5,
            "unit": "kg",
        }
    ]


def test_annotate_requires_exactly_one_source():
    assert client.post("/annotate", json={}).status_code == 422
    assert client.post("/annotate", json={"html": " "}).status_code == 422
    assert client.post("/annotate", json={"html": PAGE, "url": "https://shop.example"}).status_code == 422


def test_annotate_rejects_bad_depth():
    resp = client.post("/annotate", json={"html": PAGE, "max_ancestor_depth": 0})
    assert resp.status_code == 422


def test_annotate_url_uses_fetcher(monkeypatch):
    seen = []

    def fake_fetch(url):
        seen.append(url)
        return PAGE

    monkeypatch.setattr("unitprice.api.fetch_page_html", fake_fetch)

    resp = client.post("/annotate", json={"url": " https://shop.example/havre "})
    assert resp.status_code == 200
    assert seen == ["https://shop.example/havre"]
    assert len(resp.json()["annotations"]) == 1


def test_annotate_url_fetch_failure_is_502(monkeypatch):
    monkeypatch.setattr("unitprice.api.fetch_page_html", lambda url: None)

    resp = client.post("/annotate", json={"url": "https://shop.example/gone"})
    assert resp.status_code == 502
