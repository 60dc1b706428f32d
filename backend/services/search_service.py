# services/search_service.py
# 웹 검색 (DuckDuckGo HTML 결과 스크래핑, best-effort)
# 실패하면 빈 결과를 돌려준다
import html
import logging
import re
import requests
from typing import Any, Dict, List, Optional
from urllib.parse import parse_qs, urlsplit

logger = logging.getLogger(__name__)

DDG_HTML_URL = "https://html.duckduckgo.com/html/"
USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

# 리소스 유형별로 검색어에 덧붙일 단어
RESOURCE_SUFFIX = {
    "venue": " venue booking location hire",
    "tickets": " tickets booking buy purchase",
    "catering": " catering food service booking",
    "supplies": " rental hire supplies equipment",
}

RESULT_RE = re.compile(r'<div class="result[^"]*">.*?</div>', re.S)
TITLE_RE = re.compile(r'<a[^>]*class="result__a"[^>]*href="([^"]*)"[^>]*>([^<]+)</a>')
SNIPPET_RE = re.compile(r'<a[^>]*class="result__snippet"[^>]*>([^<]+)</a>')
PAGE_TITLE_RE = re.compile(r"<title[^>]*>([^<]+)</title>", re.I)
BODY_RE = re.compile(r"<body[^>]*>(.*?)</body>", re.I | re.S)


def _unwrap_redirect(url: str) -> str:
    """
    DuckDuckGo 리다이렉트 링크(//duckduckgo.com/l/?uddg=...)에서 실제 URL을 꺼낸다.
    """

    if url.startswith("//duckduckgo.com/l/?"):
        target = parse_qs(urlsplit(url).query).get("uddg")
        if target:
            return target[0]
    return url


def parse_results(page: str, max_results: int) -> List[Dict[str, Any]]:
    """
    DuckDuckGo HTML에서 검색 결과를 뽑는다.

    :param page: HTML 원문
    :type page: str
    :param max_results: 최대 결과 수
    :type max_results: int
    :return: [{title, url, description, source}]
    :rtype: List[Dict[str, Any]]
    """

    results: List[Dict[str, Any]] = []
    for block in RESULT_RE.findall(page)[:max_results]:
        t = TITLE_RE.search(block)
        if not t or not t.group(1) or not t.group(2).strip():
            continue
        s = SNIPPET_RE.search(block)
        url = _unwrap_redirect(html.unescape(t.group(1)))
        if "duckduckgo.com" in url:
            continue
        results.append({
            "title": html.unescape(t.group(2).strip())[:100],
            "url": url,
            "description": (html.unescape(s.group(1).strip()) if s else "No description available")[:200],
            "source": "duckduckgo_search",
        })
    return results


def search_web(query: str, max_results: int = 3) -> List[Dict[str, Any]]:
    """
    웹 검색을 수행한다. HTTP 실패/네트워크 오류는 빈 리스트.

    :param query: 검색어
    :type query: str
    :param max_results: 최대 결과 수
    :type max_results: int
    :return: 검색 결과 리스트
    :rtype: List[Dict[str, Any]]
    """

    try:
        r = requests.get(
            DDG_HTML_URL,
            params={"q": query},
            headers={
                "User-Agent": USER_AGENT,
                "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
                "Accept-Language": "en-US,en;q=0.5",
            },
            timeout=20,
        )
    except requests.RequestException as e:
        logger.error("[SEARCH] request failed q=%s: %s", query, e)
        return []

    if not r.ok:
        logger.warning("[SEARCH] HTTP %s q=%s", r.status_code, query)
        return []

    results = parse_results(r.text, max_results)
    logger.info("[SEARCH] q=%s -> %d results", query, len(results))
    return results


def search_event_resources(query: str, resource_type: str) -> List[Dict[str, Any]]:
    """
    리소스 유형(venue/tickets/catering/supplies)에 맞게 검색어를 보강해서 검색한다.
    """

    enhanced = query + RESOURCE_SUFFIX.get(resource_type, "")
    logger.debug("[SEARCH] %s resources q=%s", resource_type, enhanced)
    return search_web(enhanced, 5)


def extract_page_content(url: str) -> Optional[Dict[str, str]]:
    """
    페이지 제목과 본문 텍스트(최대 2000자)를 가져온다. 실패하면 None.
    """

    try:
        r = requests.get(url, headers={"User-Agent": USER_AGENT}, timeout=20)
    except requests.RequestException as e:
        logger.error("[SEARCH] content fetch failed url=%s: %s", url, e)
        return None
    if not r.ok:
        return None

    page = r.text
    m = PAGE_TITLE_RE.search(page)
    title = m.group(1).strip() if m else "No title"

    content = ""
    body = BODY_RE.search(page)
    if body:
        text = re.sub(r"<script[^>]*>.*?</script>", "", body.group(1), flags=re.I | re.S)
        text = re.sub(r"<style[^>]*>.*?</style>", "", text, flags=re.I | re.S)
        text = re.sub(r"<[^>]+>", " ", text)
        content = re.sub(r"\s+", " ", html.unescape(text)).strip()[:2000]

    return {"title": title, "content": content, "url": url}
