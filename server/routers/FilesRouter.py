from fastapi import APIRouter, Depends, Request

from server.dependencies.auth import verify_api_key
from server.models.requests import FilePurgeRequest, FilesRequest
from server.models.responses import FilesPurgeResponse, PurgeResponse
from shared.models.memory import FileBatchResult

router = APIRouter(prefix="/files", tags=["files"])


@router.post("/vectorize-all")
async def vectorize_all_files(request: Request, body: FilesRequest, _: None = Depends(verify_api_key)) -> FileBatchResult:
    """Vectorize every Data Bank file and chat attachment not stored yet."""
    return await request.app.state.sync_service.vectorize_all_files(body.messages, body.data_bank)


@router.post("/purge")
async def purge_files(request: Request, body: FilesRequest, _: None = Depends(verify_api_key)) -> FilesPurgeResponse:
    """Remove the collections of every Data Bank file and chat attachment."""
    urls = [file.url for file in body.data_bank]
    urls += [message.extra.file.url for message in body.messages if message.extra.file]
    return FilesPurgeResponse(purged=await request.app.state.sync_service.purge_files(urls))


@router.post("/purge-one")
async def purge_file(request: Request, body: FilePurgeRequest, _: None = Depends(verify_api_key)) -> PurgeResponse:
    """Remove the collection of a deleted attachment."""
    return PurgeResponse(purged=await request.app.state.sync_service.purge_file(body.url))
