from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging

from .hatalar import (
    CekirdekHatasi, InvalidInputError, NotFoundError, InvalidPriceError,
    ProductInactiveError, OverlappingPriceError, OverpaymentError,
    HasPaymentsError, NotDeletedError, RecipeInUseError, PersistenceError
)
from .rotalar import (
    dogrulama, fiyatlar, receteler, hammaddeler,
    siparisler, cop_kutusu, cari_hareketler
)

# Loglama ayarları
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

# Hata sınıfı -> HTTP durum kodu
HATA_DURUM_KODLARI = {
    InvalidInputError: status.HTTP_400_BAD_REQUEST,
    InvalidPriceError: status.HTTP_400_BAD_REQUEST,
    ProductInactiveError: status.HTTP_400_BAD_REQUEST,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    OverlappingPriceError: status.HTTP_409_CONFLICT,
    OverpaymentError: status.HTTP_409_CONFLICT,
    HasPaymentsError: status.HTTP_409_CONFLICT,
    NotDeletedError: status.HTTP_409_CONFLICT,
    RecipeInUseError: status.HTTP_409_CONFLICT,
    PersistenceError: status.HTTP_503_SERVICE_UNAVAILABLE,
}

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Uygulama başladığında ve kapandığında çalışacak olay yönetimi.
    Tablo oluşturma bu uygulamanın değil create_or_update_pg_tables.py script'inin görevidir.
    """
    logger.info("API başlatılıyor...")
    yield
    logger.info("API kapanıyor...")

app = FastAPI(
    lifespan=lifespan,
    title="Fiyat ve Maliyet Çekirdeği API",
    description="Fiyat çözümleme, reçete maliyeti ve sipariş ödemeleri için RESTful API",
    version="1.0.0",
)

# CORS ayarları
origins = ["*"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.exception_handler(CekirdekHatasi)
async def cekirdek_hatasi_handler(request: Request, exc: CekirdekHatasi):
    durum_kodu = status.HTTP_400_BAD_REQUEST
    for hata_sinifi, kod in HATA_DURUM_KODLARI.items():
        if isinstance(exc, hata_sinifi):
            durum_kodu = kod
            break
    return JSONResponse(
        status_code=durum_kodu,
        content=jsonable_encoder({"detail": exc.mesaj, "hata": type(exc).__name__, "detay": exc.detay}),
    )

# Router'ları (rotaları) uygulamaya dahil etme
app.include_router(dogrulama.router, tags=["Kimlik Doğrulama"])
app.include_router(fiyatlar.router, tags=["Fiyatlar"])
app.include_router(hammaddeler.router, tags=["Hammaddeler"])
app.include_router(receteler.router, tags=["Reçeteler"])
app.include_router(siparisler.router, tags=["Siparişler"])
app.include_router(cop_kutusu.router, tags=["Çöp Kutusu"])
app.include_router(cari_hareketler.router, tags=["Cari Hareketler"])

@app.get("/")
def read_root():
    return {"message": "Fiyat ve Maliyet Çekirdeği API'sine hoş geldiniz!"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
