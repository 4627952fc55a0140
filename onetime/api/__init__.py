"""
Onetime REST API

Blueprint with the file, link and download endpoints and their
OpenAPI/Swagger documentation.
"""

from flask import Blueprint
from flask_restx import Api

api_bp = Blueprint("onetime_api", __name__)

api = Api(
    api_bp,
    version="1.0",
    title="Onetime Downloader API",
    description="Upload files and hand them out through single-use download links",
    doc="/api/docs",  # Swagger UI
)

# Import namespaces after api is created to avoid circular imports
from .namespaces import download_ns, files_ns, links_ns  # noqa: E402

api.add_namespace(files_ns, path="/api/files")
api.add_namespace(links_ns, path="/api/links")
api.add_namespace(download_ns, path="/download")
