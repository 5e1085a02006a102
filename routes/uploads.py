from typing import List, Optional

from fastapi import APIRouter, File, Form, HTTPException, UploadFile

from integrations import media
from responses import result

router = APIRouter(prefix="/api/upload", tags=["uploads"])


@router.post("", status_code=201)
def upload_files(files: List[UploadFile] = File(...), folder: Optional[str] = Form(None)):
    uploaded = media.upload_images([f.file for f in files], folder=folder)
    return result({"urls": [u["url"] for u in uploaded], "results": uploaded}, "Files uploaded successfully")


@router.delete("/{public_id:path}")
def delete_file(public_id: str):
    if not media.delete_image(public_id):
        raise HTTPException(status_code=404, detail="Image not found")
    return result({"public_id": public_id}, "Image deleted successfully")
