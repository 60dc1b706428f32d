# routes/search.py
# 웹 검색 / 검색어 생성 라우터
import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from routes.planner_prompts import SEARCH_QUERY_PROMPT, SEARCH_QUERY_MAX_TOKENS
from routes.planner_openai import chat_completion
from schemas.search_schema import BrowserSearchIn, BrowserSearchOut, SearchQueryIn, SearchQueryOut
from services.search_service import search_web, search_event_resources

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["search"])


@router.post("/browser-search", response_model=BrowserSearchOut)
def browser_search(input: BrowserSearchIn):
    """
    이벤트 리소스(장소/티켓/케이터링/용품) 웹 검색

    :param input: {query, resourceType?, maxResults?}
    :type input: BrowserSearchIn
    :return: {results: [...]}
    :rtype: BrowserSearchOut
    """

    query = input.query.strip()
    if not query:
        return JSONResponse(status_code=400, content={"error": "Query is required"})

    try:
        if input.resource_type and input.resource_type != "general":
            results = search_event_resources(query, input.resource_type)
        else:
            results = search_web(query, input.max_results or 5)
    except Exception as e:
        logger.error("Browser search error: %s", e)
        return JSONResponse(status_code=500, content={"error": "Browser search failed", "details": str(e)})

    return BrowserSearchOut(results=results)


@router.post("/generate-search-query", response_model=SearchQueryOut)
def generate_search_query(input: SearchQueryIn):
    """
    사용자 메시지/LLM 답변에서 짧은 검색어를 뽑는다.

    :param input: {message}
    :type input: SearchQueryIn
    :return: {query, original}
    :rtype: SearchQueryOut
    """

    if not input.message.strip():
        return JSONResponse(status_code=400, content={"error": "Message is required"})

    try:
        raw = chat_completion(
            [
                {"role": "system", "content": SEARCH_QUERY_PROMPT},
                {"role": "user", "content": input.message},
            ],
            max_tokens=SEARCH_QUERY_MAX_TOKENS,
        )
    except Exception as e:
        logger.error("Search query generation error: %s", e)
        return JSONResponse(status_code=500, content={"error": "Failed to generate search query", "details": str(e)})

    query = raw.strip().replace('"', "").replace("'", "")
    logger.info("[SEARCH] generated query='%s'", query)
    return SearchQueryOut(query=query, original=input.message)
