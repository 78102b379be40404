from fastapi import APIRouter, Depends, HTTPException, Query, Response
from jobtracker.services.storage import FileStorage, get_storage

router = APIRouter()


@router.get("/{bucket}/{path:path}")
async def read_signed_object(
    bucket: str,
    path: str,
    token: str = Query(...),
    storage: FileStorage = Depends(get_storage),
):
    """Serve a private object to the holder of a valid signed URL."""
    if not storage.verify_signed_token(token, bucket, path):
        raise HTTPException(status_code=403, detail="Invalid or expired signature")

    data = await storage.download(bucket, path)
    return Response(content=data, media_type="application/octet-stream")
