"""Tests for site link discovery and search-result mining."""

from urllib.parse import quote

from bs4 import BeautifulSoup

from webgather.crawler.links import search_result_links, site_links, unwrap_redirect


def soup_of(html):
    return BeautifulSoup(html, "lxml")


def wrapped(target):
    return f"//duckduckgo.com/l/?uddg={quote(target, safe='')}&rut=abc"


class TestSiteLinks:
    def test_resolves_normalizes_and_dedupes(self):
        html = """
        <a href="/b">b</a>
        <a href="/b/">b again</a>
        <a href="c?utm_source=x">c</a>
        <a href="#top">top</a>
        <a href="mailto:x@a.test">mail</a>
        <a href="https://other.test/">other</a>
        """
        links = site_links(soup_of(html), base_url="https://a.test/dir/")
        assert links == [
            "https://a.test/b",
            "https://a.test/dir/c",
            "https://other.test/",
        ]

    def test_scope_url_keeps_same_host_only(self):
        html = '<a href="/b">b</a><a href="https://other.test/">o</a><a href="https://www.a.test/c">c</a>'
        links = site_links(
            soup_of(html),
            base_url="https://a.test/",
            scope_url="https://a.test/",
        )
        assert links == ["https://a.test/b", "https://www.a.test/c"]


class TestUnwrapRedirect:
    def test_wrapper_yields_target(self):
        assert unwrap_redirect(wrapped("https://example.com/page?q=1")) == "https://example.com/page?q=1"

    def test_relative_wrapper_from_results_page(self):
        assert unwrap_redirect("/l/?uddg=https%3A%2F%2Fexample.com&rut=x") == "https://example.com"

    def test_wrapper_without_target_is_unresolvable(self):
        assert unwrap_redirect("//duckduckgo.com/l/?rut=abc") is None

    def test_plain_link_passes_through(self):
        assert unwrap_redirect(" https://example.com/x ") == "https://example.com/x"


class TestSearchResultLinks:
    def test_mines_unwrapped_http_targets(self):
        html = f"""
        <div class="result"><h2 class="result__title">
          <a class="result__a" href="{wrapped('https://one.test/a')}">One</a>
        </h2></div>
        <div class="result"><h2 class="result__title">
          <a class="result__a" href="https://two.test/b">Two</a>
        </h2></div>
        <div class="result"><h2 class="result__title">
          <a class="result__a" href="//duckduckgo.com/l/?rut=only">Broken</a>
        </h2></div>
        <div class="result"><h2 class="result__title">
          <a class="result__a" href="https://duckduckgo.com/settings">Provider</a>
        </h2></div>
        <div class="result"><h2 class="result__title">
          <a class="result__a" href="/relative">Relative</a>
        </h2></div>
        <a href="https://three.test/">Not a result</a>
        """
        assert search_result_links(soup_of(html)) == ["https://one.test/a", "https://two.test/b"]

    def test_no_results(self):
        assert search_result_links(soup_of("<p>nothing</p>")) == []


class TestMalformedHrefs:
    def test_site_links_skip_broken_anchor(self):
        html = '<a href="http://[bad">x</a><a href="/next">n</a>'
        assert site_links(soup_of(html), base_url="https://a.test/") == ["https://a.test/next"]

    def test_unwrap_redirect_of_broken_link(self):
        assert unwrap_redirect("http://[bad") is None

    def test_search_results_skip_broken_anchor(self):
        html = f"""
        <h2 class="result__title"><a class="result__a" href="http://[bad">Broken</a></h2>
        <h2 class="result__title"><a class="result__a" href="{wrapped('https://one.test/a')}">One</a></h2>
        """
        assert search_result_links(soup_of(html)) == ["https://one.test/a"]
