from .download import router as download
from .files import router as files
