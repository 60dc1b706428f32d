import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import config
from routes.planner import router as planner_router
from routes.search import router as search_router
from routes.slack_events import router as slack_events_router

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Event Planner")

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:5173",
        config.WEB_ORIGIN
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(planner_router)
app.include_router(search_router)
app.include_router(slack_events_router)

# 설정 로드 결과 간단 로깅 (민감정보 마스킹)
logger.info(
    "[CONFIG] model=%s slack_token=%s signing_secret=%s",
    config.OPENAI_MODEL,
    config._mask(config.SLACK_BOT_TOKEN) or "(none)",
    bool(config.SLACK_SIGNING_SECRET),
)
if not config.SLACK_SIGNING_SECRET:
    logger.warning("[CONFIG] SLACK_SIGNING_SECRET not set: webhook signature verification is disabled")


@app.get("/health")
def health():
    return {"ok": True}
