from ..infrastructure.app_factory import create_application
from ..infrastructure.config.settings import get_settings
from ..interfaces.api import router as api_router

settings = get_settings()

app = create_application(
    router=api_router,
    settings=settings,
    summary="REST API for capturing handwritten notes as structured text",
    description="""
    # Note Capture API

    Upload photos of notes and get them back as clean Markdown:

    * **Text recognition**: Azure Computer Vision reads the image
    * **Layout analysis**: Azure Document Intelligence describes its structure
    * **AI cleanup**: Azure OpenAI fixes recognition errors, guided by your context documents
    * **Note sets**: Batches of images are kept together as ordered note sets

    ## Features

    - Single and batch uploads with per-file error reporting
    - CRUD operations for documents, note sets and context documents
    - Works without the optional services; uploads then keep the raw text
    """,
)
