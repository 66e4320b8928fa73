from pydantic import BaseModel


class ReadingProgressUpdate(BaseModel):
    last_page: int = 0
    percent: float = 0
