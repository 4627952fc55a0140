"""
API Namespaces - Organized endpoint groups
"""

from flask import Response, current_app, g, request
from flask_restx import Namespace, Resource

from onetime.api.guards import require_api_key, require_remote_address
from onetime.api.models import (
    create_link_request,
    error_response,
    file_response,
    link_response,
)
from onetime.application.redemption_result import RedemptionOutcome
from onetime.domain.errors import (
    DomainError,
    ErrorCategory,
    InvalidInputError,
    StorageUnavailableError,
    create_error_response,
)

# HTTP status per failed redemption outcome; a used link looks like a missing one
REDEMPTION_STATUS_CODES = {
    RedemptionOutcome.NOT_FOUND: 404,
    RedemptionOutcome.ALREADY_REDEEMED: 404,
    RedemptionOutcome.CONTENT_MISSING: 404,
    RedemptionOutcome.INVALID_REQUEST: 400,
    RedemptionOutcome.INTERNAL_ERROR: 500,
}


def _storage_error_response(operation: str, error: DomainError):
    """Map a storage failure raised outside redemption to an error response."""
    current_app.logger.error(f"{operation} failed: {error}")
    if isinstance(error, StorageUnavailableError):
        return create_error_response(
            ErrorCategory.STORAGE_UNAVAILABLE, str(error), status_code=503
        )
    return create_error_response(
        ErrorCategory.SYSTEM_ERROR, f"Something went wrong! {error}", status_code=500
    )


def _too_large(field: str, size: int):
    return create_error_response(
        ErrorCategory.FILE_TOO_LARGE,
        f"field value too big! {field}: {size}",
        status_code=400,
    )


# =============================================================================
# Files Namespace - Upload and catalog
# =============================================================================

files_ns = Namespace("files", description="Stored file operations")


@files_ns.route("/")
class Files(Resource):
    """List and upload files"""

    @files_ns.doc("list_files")
    @files_ns.response(200, "Success", [file_response])
    @files_ns.response(401, "Unauthorized", error_response)
    @files_ns.response(503, "Storage Unavailable", error_response)
    @require_api_key("files_api_key")
    def get(self):
        """
        List stored files

        Contents are never included; each entry reports its size instead.
        """
        try:
            files = current_app.onetime_service.list_files()
        except DomainError as e:
            return _storage_error_response("list_files", e)
        return [file.to_dict() for file in files], 200

    @files_ns.doc("add_file")
    @files_ns.response(200, "File stored", file_response)
    @files_ns.response(400, "Bad Request", error_response)
    @files_ns.response(401, "Unauthorized", error_response)
    @files_ns.response(429, "Unusable Remote Address", error_response)
    @require_api_key("files_api_key")
    @require_remote_address
    def post(self):
        """
        Upload a file

        Multipart form with a 'file' part and an optional 'filename' field
        that overrides the uploaded file's own name. Uploading an existing
        name replaces its contents.
        """
        config = current_app.onetime_config

        field_filename = request.form.get("filename")
        if field_filename is not None:
            size = len(field_filename.encode("utf-8"))
            if size > config.max_len_value:
                return _too_large("filename", size)

        upload = request.files.get("file")
        contents = None
        if upload is not None and upload.filename:
            contents = upload.read(config.max_len_file + 1)
            if len(contents) > config.max_len_file:
                return _too_large("file", len(contents))

        filename = field_filename or (upload.filename if upload is not None else None)
        if not filename or contents is None:
            return create_error_response(
                ErrorCategory.INVALID_REQUEST,
                "No filename or file contents provided!",
                status_code=400,
            )

        try:
            file = current_app.onetime_service.upload_file(filename, contents)
        except InvalidInputError as e:
            return create_error_response(
                ErrorCategory.INVALID_REQUEST, str(e), status_code=400
            )
        except DomainError as e:
            return _storage_error_response("add_file", e)

        return file.to_dict(), 200


# =============================================================================
# Links Namespace - Link issuance and catalog
# =============================================================================

links_ns = Namespace("links", description="Single-use link operations")


@links_ns.route("/")
class Links(Resource):
    """List and issue links"""

    @links_ns.doc("list_links")
    @links_ns.response(200, "Success", [link_response])
    @links_ns.response(401, "Unauthorized", error_response)
    @links_ns.response(503, "Storage Unavailable", error_response)
    @require_api_key("links_api_key")
    def get(self):
        """List issued links with their redemption state"""
        try:
            links = current_app.onetime_service.list_links()
        except DomainError as e:
            return _storage_error_response("list_links", e)
        return [link.to_dict() for link in links], 200

    @links_ns.doc("add_link")
    @links_ns.expect(create_link_request)
    @links_ns.response(200, "Download path as text/plain")
    @links_ns.response(400, "Bad Request", error_response)
    @links_ns.response(401, "Unauthorized", error_response)
    @links_ns.response(429, "Unusable Remote Address", error_response)
    @require_api_key("links_api_key")
    @require_remote_address
    def post(self):
        """
        Issue a single-use link

        Returns the download path, e.g. /download/0000017a2b3c4d5e9f8e7d6c5b4a3928.
        The file does not have to be uploaded yet.
        """
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return create_error_response(
                ErrorCategory.INVALID_REQUEST, "Expected a JSON object", status_code=400
            )

        filename = data.get("filename")
        note = data.get("note")
        ttl_seconds = data.get("ttl_seconds")

        if not isinstance(filename, str) or not filename.strip():
            return create_error_response(
                ErrorCategory.INVALID_REQUEST, "Invalid filename for link!", status_code=400
            )
        if len(filename.encode("utf-8")) > current_app.onetime_config.max_len_value:
            return _too_large("filename", len(filename.encode("utf-8")))
        if note is not None and not isinstance(note, str):
            return create_error_response(
                ErrorCategory.INVALID_REQUEST, "note must be a string", status_code=400
            )
        if ttl_seconds is not None and (
            isinstance(ttl_seconds, bool) or not isinstance(ttl_seconds, int)
        ):
            return create_error_response(
                ErrorCategory.INVALID_REQUEST, "ttl_seconds must be an integer", status_code=400
            )

        service = current_app.onetime_service
        try:
            link = service.issue_link(filename, note=note, ttl_seconds=ttl_seconds)
        except InvalidInputError as e:
            return create_error_response(
                ErrorCategory.INVALID_REQUEST, str(e), status_code=400
            )
        except DomainError as e:
            return _storage_error_response("add_link", e)

        return Response(service.download_path(link), status=200, mimetype="text/plain")


# =============================================================================
# Download Namespace - Redemption
# =============================================================================

download_ns = Namespace("download", description="Link redemption")


@download_ns.route("/<string:token>")
@download_ns.param("token", "The single-use download token")
class Download(Resource):
    """Redeem a link"""

    @download_ns.doc("download_link")
    @download_ns.response(200, "File content")
    @download_ns.response(404, "Not found, already downloaded or content missing", error_response)
    @download_ns.response(429, "Unusable Remote Address", error_response)
    @download_ns.response(500, "Internal Server Error", error_response)
    @require_remote_address
    def get(self, token):
        """
        Download a file through its link

        The first request consumes the link. Every later request, including
        ones racing the first, gets 404.
        """
        result = current_app.onetime_service.redeem(token, g.client_ip)

        if not result.success:
            return result.to_dict(), REDEMPTION_STATUS_CODES[result.outcome]

        return Response(
            result.contents,
            status=200,
            mimetype="application/octet-stream",
            headers={"Content-Disposition": result.content_disposition},
        )
