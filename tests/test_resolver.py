import pytest
import requests

from geocoding.link_unwrapper import LinkUnwrapError, LinkUnwrapper, UnwrappedLink
from geocoding.nominatim_client import GeocodeFailure, PlaceMatch
from geocoding.resolver import LocationResolver, ParseFailure, ResolutionSource

from tests.fakes import FakeGeocoder, FakeResponse, FakeSession


class FakeUnwrapper:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.calls = []

    def unwrap(self, url):
        self.calls.append(url)
        if self.error:
            raise self.error
        return self.result


class FailingSearch:
    def search(self, query):
        raise GeocodeFailure("down")


@pytest.fixture
def unwrapper():
    return FakeUnwrapper()


@pytest.fixture
def places():
    return FakeGeocoder(places={
        "Plaza Bolivar, Caracas": PlaceMatch((10.5061, -66.9146), "Plaza Bolívar, Caracas, Venezuela"),
        "7GQ8F2JV+6F": PlaceMatch((10.4806, -66.8983), "Caracas"),
    })


@pytest.fixture
def resolver(unwrapper, places):
    return LocationResolver(link_unwrapper=unwrapper, place_search=places)


# ---- 1. Direct coordinates ----

@pytest.mark.parametrize("text, expected", [
    ("10.4806, -66.8983", (10.4806, -66.8983)),
    ("10.4806 -66.8983", (10.4806, -66.8983)),
    ("  -33.8688,151.2093 ", (-33.8688, 151.2093)),
    ("Pin: 10.4806, -66.8983 (gate)", (10.4806, -66.8983)),
    ("10, -66", (10.0, -66.0)),
])
def test_direct_coordinates(resolver, unwrapper, places, text, expected):
    result = resolver.resolve(text)
    assert result.coordinate == expected
    assert result.source == ResolutionSource.COORDINATES
    assert unwrapper.calls == []
    assert places.search_calls == []


@pytest.mark.parametrize("text", ["200, 50", "10.5, -190.25", "95.1 10.2"])
def test_out_of_range_coordinates_fail(resolver, places, text):
    with pytest.raises(ParseFailure) as excinfo:
        resolver.resolve(text)
    assert excinfo.value.raw_text == text
    assert "out of range" in excinfo.value.message
    assert places.search_calls == []


# ---- 2. Map links ----

@pytest.mark.parametrize("text, expected", [
    ("https://www.google.com/maps/@10.1,-66.2,15z", (10.1, -66.2)),
    ("https://www.google.com/maps/place/X/@10.5061,-66.9146,17z/data=!3m1", (10.5061, -66.9146)),
    ("https://maps.google.com/?q=10.4806,-66.8983", (10.4806, -66.8983)),
    ("https://maps.google.com/?q=10.4806%2C-66.8983", (10.4806, -66.8983)),
    ("https://maps.google.com/maps?hl=es&ll=10.3,-66.4&z=12", (10.3, -66.4)),
    ("https://maps.example.com/static?center=10.7,-66.1&zoom=3", (10.7, -66.1)),
])
def test_map_links_resolve_without_external_calls(resolver, unwrapper, places, text, expected):
    result = resolver.resolve(text)
    assert result.coordinate == expected
    assert result.source == ResolutionSource.MAP_LINK
    assert unwrapper.calls == []
    assert places.search_calls == []


def test_map_link_patterns_follow_priority_order(resolver):
    text = "https://maps.google.com/maps?ll=1.5,1.5&q=2.5,2.5/@3.5,3.5"
    assert resolver.resolve(text).coordinate == (3.5, 3.5)


def test_out_of_range_map_link_match_is_skipped(resolver):
    text = "https://maps.google.com/maps/@95.5,10.5?q=10.25,-66.75"
    assert resolver.resolve(text).coordinate == (10.25, -66.75)


# ---- 3. Short links ----

def test_short_link_uses_resolved_url(resolver, unwrapper):
    unwrapper.result = UnwrappedLink(
        resolved_url="https://www.google.com/maps/place/Caracas/@10.4806,-66.9036,13z",
        body="<html></html>",
    )
    result = resolver.resolve("https://maps.app.goo.gl/EVQ9oBGiuagyzqTx7")

    assert unwrapper.calls == ["https://maps.app.goo.gl/EVQ9oBGiuagyzqTx7"]
    assert result.coordinate == (10.4806, -66.9036)
    assert result.source == ResolutionSource.SHORT_LINK


def test_short_link_falls_back_to_body(resolver, unwrapper):
    unwrapper.result = UnwrappedLink(
        resolved_url="https://consent.google.com/ml?continue=xyz",
        body='<meta content="https://maps.google.com/maps?center=10.51%2C-66.91&amp;zoom=15">',
    )
    assert resolver.resolve("Look: https://goo.gl/maps/abc123").coordinate == (10.51, -66.91)


def test_short_link_deep_scan_of_body(resolver, unwrapper):
    unwrapper.result = UnwrappedLink(
        resolved_url="",
        body='window.APP_INIT=["/maps/preview/place?z=1&pb=10.48061%2C+-66.90362"]',
    )
    assert resolver.resolve("maps.app.goo.gl/xyz www.goo.gl/xyz").coordinate == (10.48061, -66.90362)


def test_short_link_space_joined_pair(resolver, unwrapper):
    unwrapper.result = UnwrappedLink(resolved_url="", body="loc=10.480612+-66.903621;")
    assert resolver.resolve("https://goo.gl/maps/x").coordinate == (10.480612, -66.903621)


def test_short_link_without_coordinates_fails(resolver, unwrapper, places):
    unwrapper.result = UnwrappedLink(resolved_url="https://example.com/", body="nothing here")
    with pytest.raises(ParseFailure) as excinfo:
        resolver.resolve("https://maps.app.goo.gl/nothing")
    assert "full Google Maps link" in excinfo.value.message
    assert places.search_calls == []


def test_short_link_unwrap_error_fails(resolver, unwrapper):
    unwrapper.error = LinkUnwrapError("timeout")
    with pytest.raises(ParseFailure) as excinfo:
        resolver.resolve("https://maps.app.goo.gl/abc")
    assert excinfo.value.raw_text == "https://maps.app.goo.gl/abc"


def test_short_link_without_unwrapper_fails():
    with pytest.raises(ParseFailure):
        LocationResolver().resolve("https://maps.app.goo.gl/abc")


# ---- 4. Place search ----

@pytest.mark.parametrize("text", ["Plaza Bolivar, Caracas", "7GQ8F2JV+6F"])
def test_free_text_goes_to_place_search(resolver, places, text):
    result = resolver.resolve(text)
    assert result.source == ResolutionSource.PLACE_SEARCH
    assert result.coordinate == places.places[text].coordinate
    assert result.label == places.places[text].label
    assert places.search_calls == [text]


def test_place_not_found_fails(resolver):
    with pytest.raises(ParseFailure) as excinfo:
        resolver.resolve("a place that does not exist")
    assert excinfo.value.raw_text == "a place that does not exist"


def test_place_search_failure_becomes_parse_failure():
    resolver = LocationResolver(place_search=FailingSearch())
    with pytest.raises(ParseFailure):
        resolver.resolve("Plaza Bolivar")


def test_no_place_search_configured():
    with pytest.raises(ParseFailure) as excinfo:
        LocationResolver().resolve("Plaza Bolivar")
    assert "not recognized" in excinfo.value.message


@pytest.mark.parametrize("text", ["", "   ", None])
def test_blank_input_fails(resolver, text):
    with pytest.raises(ParseFailure):
        resolver.resolve(text)


# ---- LinkUnwrapper ----

def test_unwrapper_direct_follows_redirects():
    session = FakeSession(FakeResponse(url="https://www.google.com/maps/@10.1,-66.2,15z", text="<html/>"))
    result = LinkUnwrapper(proxy_url="", session=session).unwrap("https://maps.app.goo.gl/abc")

    assert result == UnwrappedLink("https://www.google.com/maps/@10.1,-66.2,15z", "<html/>")
    assert session.calls[0][1]["allow_redirects"] is True


def test_unwrapper_via_proxy():
    session = FakeSession(FakeResponse({"contents": "<html>q=1</html>", "status": {"url": "https://final"}}))
    unwrapper = LinkUnwrapper(proxy_url="https://api.allorigins.win/get", session=session)
    result = unwrapper.unwrap("https://maps.app.goo.gl/abc")

    assert result == UnwrappedLink("https://final", "<html>q=1</html>")
    url, kwargs = session.calls[0]
    assert url == "https://api.allorigins.win/get"
    assert kwargs["params"] == {"url": "https://maps.app.goo.gl/abc"}


@pytest.mark.parametrize("proxy, response", [
    ("", requests.ConnectionError("offline")),
    ("", FakeResponse(status_code=404)),
    ("https://proxy.test/get", FakeResponse(None)),
    ("https://proxy.test/get", FakeResponse(["not", "a", "dict"])),
])
def test_unwrapper_errors(proxy, response):
    unwrapper = LinkUnwrapper(proxy_url=proxy, session=FakeSession(response))
    with pytest.raises(LinkUnwrapError):
        unwrapper.unwrap("https://maps.app.goo.gl/abc")


def test_end_to_end_short_link_through_proxy():
    session = FakeSession(FakeResponse({
        "contents": "",
        "status": {"url": "https://www.google.com/maps/place/Caracas/@10.4806,-66.8983,17z?entry=tts"},
    }))
    resolver = LocationResolver(link_unwrapper=LinkUnwrapper(proxy_url="https://proxy.test/get", session=session))
    result = resolver.resolve("https://maps.app.goo.gl/EVQ9oBGiuagyzqTx7")

    assert result.coordinate == (10.4806, -66.8983)
    assert result.source == ResolutionSource.SHORT_LINK
    assert session.calls[0][1]["params"] == {"url": "https://maps.app.goo.gl/EVQ9oBGiuagyzqTx7"}
