"""
FastAPI backend service for payment voucher OCR.
"""
from fastapi import Depends, FastAPI, File, UploadFile, HTTPException
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
import logging
from typing import List, Optional

from voucher_parser import BatchRunner, InputImage, TesseractEngine, load_rulebook, list_rulebooks, render_csv
from voucher_parser.core.normalize import normalize_money
from voucher_parser.core.ocr import OCREngine
from voucher_parser.core.rules import DEFAULT_RULEBOOK

app = FastAPI(title="Voucher Parser OCR", version="1.0.0")

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://localhost:3000"],  # Vite and other dev servers
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

NO_FILES_MESSAGE = "Por favor, selecciona al menos una imagen."


def get_engine() -> OCREngine:
    """OCR engine used by the endpoints."""
    return TesseractEngine(grayscale=True)


async def _process_uploads(files: List[UploadFile], rulebook: str, engine: OCREngine):
    """Read uploads in order and run the batch pipeline over them."""
    if not files:
        raise HTTPException(status_code=400, detail=NO_FILES_MESSAGE)

    try:
        rules = load_rulebook(rulebook)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))

    images = []
    for upload in files:
        images.append(InputImage(name=upload.filename or "", data=await upload.read()))

    logger.info(f"Processing {len(images)} image(s) with {rulebook}")
    result = await run_in_threadpool(BatchRunner(engine, rules=rules).run, images)
    return rules, result


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"message": "Voucher Parser OCR API", "status": "healthy"}


@app.post("/extract")
async def extract_vouchers(files: Optional[List[UploadFile]] = File(None),
                           rulebook: str = DEFAULT_RULEBOOK,
                           engine: OCREngine = Depends(get_engine)):
    """
    Run OCR over uploaded screenshots and return the extracted records.

    Args:
        files: Uploaded images, in the order their rows should appear
        rulebook: Rule book ID to use

    Returns:
        Records and a processing summary as JSON
    """
    rules, result = await _process_uploads(files, rulebook, engine)

    total = sum(filter(None, (normalize_money(r.amount) for r in result.records)))
    return JSONResponse(content={
        "success": True,
        "rulebook_used": rules.rulebook_id,
        "records": [record.model_dump() for record in result.records],
        "summary": {
            "processed": len(result.records),
            "failed": result.failed,
            "failed_indices": result.failures,
            "total_amount": float(total),
        }
    })


@app.post("/export")
async def export_vouchers(files: Optional[List[UploadFile]] = File(None),
                          rulebook: str = DEFAULT_RULEBOOK,
                          engine: OCREngine = Depends(get_engine)):
    """
    Run OCR over uploaded screenshots and return the table as CSV.

    Args:
        files: Uploaded images, in the order their rows should appear
        rulebook: Rule book ID to use

    Returns:
        CSV attachment
    """
    rules, result = await _process_uploads(files, rulebook, engine)

    return Response(
        content=render_csv(result.records, rules),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f"attachment; filename={rules.export.filename}"},
    )


@app.get("/rules")
async def list_rules():
    """List all available rule books."""
    rulebooks = []
    for rulebook_id in list_rulebooks():
        rulebook = load_rulebook(rulebook_id)
        rulebooks.append({
            "id": rulebook.rulebook_id,
            "description": rulebook.description,
            "language": rulebook.language,
            "year": rulebook.year,
        })

    return JSONResponse(content={"success": True, "rulebooks": rulebooks})


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
