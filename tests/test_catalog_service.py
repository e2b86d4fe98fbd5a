import httpx
import pytest

from services.catalog_service import (
    CatalogService,
    is_invalid_barcode,
    metadata_from_volume,
    normalize_isbn,
    parse_publish_year,
)
from services.exceptions import (
    CatalogLookupError,
    CatalogNotFoundError,
    InvalidQueryError,
    UnsupportedCategoryError,
)

DUNE_VOLUME = {
    "id": "B1hSG45JCX4C",
    "volumeInfo": {
        "title": "Dune",
        "subtitle": "Deluxe Edition",
        "authors": ["Frank Herbert"],
        "publishedDate": "2005-08-02",
        "pageCount": 896,
        "categories": ["Fiction / General"],
        "industryIdentifiers": [
            {"type": "ISBN_10", "identifier": "0441013597"},
            {"type": "ISBN_13", "identifier": "9780441013593"},
        ],
        "imageLinks": {"thumbnail": "http://books.google.com/books/content?id=B1hSG45JCX4C"},
    },
    "saleInfo": {"retailPrice": {"amount": 12.5, "currencyCode": "USD"}},
}


def service_with(handler, api_key=""):
    return CatalogService(api_key=api_key, transport=httpx.MockTransport(handler))


def test_isbn_lookup_maps_volume():
    seen = []

    def handler(request):
        seen.append(request.url)
        return httpx.Response(200, json={"items": [DUNE_VOLUME]})

    [result] = service_with(handler, api_key="secret").lookup("978-0-441-01359-3", "book")

    assert seen[0].params["q"] == "isbn:9780441013593"
    assert seen[0].params["maxResults"] == "1"
    assert seen[0].params["key"] == "secret"
    assert result.title == "Dune"
    assert result.creator == "Frank Herbert"
    assert result.isbn13 == "9780441013593"
    assert result.isbn10 == "0441013597"
    assert result.release_year == 2005
    assert result.page_count == 896
    assert result.description == "Deluxe Edition"
    assert result.cover_image.startswith("https://books.google.com/")
    assert result.retail_price_usd == 12.5
    assert result.google_volume_id == "B1hSG45JCX4C"
    assert result.genre == "FICTION"


def test_isbn_miss_falls_back_to_keyword_search():
    queries = []

    def handler(request):
        queries.append(request.url.params["q"])
        if request.url.params["q"].startswith("isbn:"):
            return httpx.Response(200, json={"totalItems": 0})
        return httpx.Response(200, json={"items": [DUNE_VOLUME, {"volumeInfo": {}}]})

    results = service_with(handler).lookup("0441013597", "book")

    assert queries == ["isbn:0441013597", "0441013597"]
    assert [r.title for r in results] == ["Dune"]


def test_keyword_search_uses_five_results():
    def handler(request):
        assert request.url.params["maxResults"] == "5"
        assert request.url.params["printType"] == "books"
        assert request.url.params["orderBy"] == "relevance"
        assert "key" not in request.url.params
        return httpx.Response(200, json={"items": [DUNE_VOLUME]})

    assert service_with(handler).lookup("frank herbert dune", "book")[0].title == "Dune"


def test_barcode_of_wrong_length_is_not_found_without_search():
    def handler(request):
        raise AssertionError("no request expected")

    with pytest.raises(CatalogNotFoundError):
        service_with(handler).lookup("012345678905", "book")


def test_query_and_category_validation():
    service = service_with(lambda request: httpx.Response(200, json={}))
    with pytest.raises(InvalidQueryError):
        service.lookup(" ab ", "book")
    with pytest.raises(UnsupportedCategoryError):
        service.lookup("dune", "game")


def test_empty_search_is_not_found():
    with pytest.raises(CatalogNotFoundError):
        service_with(lambda request: httpx.Response(200, json={"totalItems": 0})).lookup("zzzz", "book")


def test_upstream_failures_are_lookup_errors():
    with pytest.raises(CatalogLookupError):
        service_with(lambda request: httpx.Response(503)).lookup("dune", "book")

    def broken(request):
        raise httpx.ConnectError("boom", request=request)

    with pytest.raises(CatalogLookupError):
        service_with(broken).lookup("dune", "book")


def test_lookup_by_volume_id():
    def handler(request):
        if request.url.path.endswith("/volumes/B1hSG45JCX4C"):
            return httpx.Response(200, json=DUNE_VOLUME)
        return httpx.Response(404, json={"error": {"code": 404}})

    service = service_with(handler)
    assert service.lookup_by_volume_id("B1hSG45JCX4C").isbn13 == "9780441013593"
    with pytest.raises(CatalogNotFoundError):
        service.lookup_by_volume_id("missing")


def test_volume_mapping_edge_cases():
    assert metadata_from_volume({"volumeInfo": {"title": ""}}) is None

    eur = dict(DUNE_VOLUME, saleInfo={"retailPrice": {"amount": 10, "currencyCode": "EUR"}})
    assert metadata_from_volume(eur).retail_price_usd is None

    small = {"volumeInfo": {"title": "X", "pageCount": 0, "imageLinks": {"smallThumbnail": "http://x/y.jpg"}}}
    mapped = metadata_from_volume(small)
    assert mapped.page_count is None
    assert mapped.cover_image == "https://x/y.jpg"


@pytest.mark.parametrize("raw, expected", [
    ("2005-08-02", 2005),
    ("circa 1887", 1887),
    ("unknown", None),
])
def test_parse_publish_year(raw, expected):
    assert parse_publish_year(raw) == expected


def test_isbn_helpers():
    assert normalize_isbn("0-306-40615-x") == "030640615X"
    assert normalize_isbn("978 0 306 40615 7") == "9780306406157"
    assert normalize_isbn("12345") == ""
    assert is_invalid_barcode("012345678905")
    assert not is_invalid_barcode("9780306406157")
    assert not is_invalid_barcode("dune 2")
