from typing import List

from fastapi import APIRouter

from prompthive.api.dependencies import WriterUser
from prompthive.schemas.transfer import ScrapedPrompt, ScrapeRequest
from prompthive.services import scraper_service


router = APIRouter(prefix="/scraper", tags=["scraper"])


@router.post("", response_model=List[ScrapedPrompt])
def scrape(payload: ScrapeRequest, current_user: WriterUser):
    """Candidate prompts found on a web page. Nothing is saved."""
    return scraper_service.scrape_url_for_prompts(payload.url)
