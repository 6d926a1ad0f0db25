from fastapi import APIRouter, Depends, HTTPException, Request

from server.dependencies.auth import verify_api_key
from server.models.requests import DataBankRequest, DataBankSearchRequest
from server.models.responses import DataBankIngestResponse, DataBankSearchResponse, FilesPurgeResponse
from shared.clients.ClientErrors import ClientRequestError
from shared.clients.vector.VectorErrors import VectorSourceError, get_error_message

router = APIRouter(prefix="/databank", tags=["databank"])


@router.post("/ingest")
async def ingest(request: Request, body: DataBankRequest, _: None = Depends(verify_api_key)) -> DataBankIngestResponse:
    """Force the ingestion of all enabled Data Bank attachments."""
    try:
        collection_ids = await request.app.state.sync_service.ingest_data_bank_attachments(body.attachments, body.source)
    except VectorSourceError as e:
        raise HTTPException(status_code=400, detail=get_error_message(e))
    except ClientRequestError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return DataBankIngestResponse(collection_ids=collection_ids)


@router.post("/purge")
async def purge(request: Request, body: DataBankRequest, _: None = Depends(verify_api_key)) -> FilesPurgeResponse:
    """Purge the collections of all Data Bank attachments."""
    urls = [file.url for file in body.attachments if not body.source or file.source == body.source]
    return FilesPurgeResponse(purged=await request.app.state.sync_service.purge_files(urls))


@router.post("/search")
async def search(request: Request, body: DataBankSearchRequest, _: None = Depends(verify_api_key)) -> DataBankSearchResponse:
    """Search the Data Bank by vector similarity.

    Args:
        request (Request): FastAPI request (provides app.state.retrieval_service).
        body (DataBankSearchRequest): Query, attachments, optional threshold and source filter.
        _ (None): Auth dependency result (unused).

    Returns:
        DataBankSearchResponse: URLs of the files with relevant content.
    """
    try:
        urls = await request.app.state.retrieval_service.search_data_bank(
            body.query, body.attachments, body.threshold, body.source,
        )
    except VectorSourceError as e:
        raise HTTPException(status_code=400, detail=get_error_message(e))
    except ClientRequestError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return DataBankSearchResponse(query=body.query, urls=urls, total=len(urls))
