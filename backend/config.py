# config.py
# 환경 변수 설정 (모두 선택값. 없으면 해당 기능만 비활성화됨)
import os
from dotenv import load_dotenv

load_dotenv()

###############################################
# OPENAI_API_KEY : LLM API 인증키                #
# OPENAI_BASE : LLM API 엔드포인트 기본 URL       #
# OPENAI_MODEL : 사용할 모델 이름                 #
###############################################
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
OPENAI_BASE = os.getenv("OPENAI_BASE", "https://api.openai.com/v1")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")

# Slack 봇 토큰이 없으면 메시지 발송/히스토리 조회는 조용히 건너뜀
SLACK_BOT_TOKEN = os.getenv("SLACK_BOT_TOKEN", "")
# 서명 시크릿이 없으면 웹훅 서명 검증을 건너뜀 (배포 선택사항, 보안 기본값 아님)
SLACK_SIGNING_SECRET = os.getenv("SLACK_SIGNING_SECRET", "")

WEB_ORIGIN = os.getenv("WEB_ORIGIN", "")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


def _mask(v: str) -> str:
    # 로그용 마스킹 (앞 5자만 노출)
    return f"{v[:5]}******" if v else ""
