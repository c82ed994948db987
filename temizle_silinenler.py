# Belirli bir günden eski, çöp kutusundaki kayıtları kalıcı olarak siler.
# Kullanım: python temizle_silinenler.py --gun 30
import argparse
import logging

# Loglama ayarları
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

from cekirdek_api.config import COP_TEMIZLEME_GUN
from cekirdek_api.veritabani import SessionLocal
from cekirdek_api.cop_kutusu_servisi import CopKutusuService

def main(argv=None):
    parser = argparse.ArgumentParser(description="Çöp kutusundaki eski kayıtları kalıcı olarak siler.")
    parser.add_argument("--gun", type=int, default=COP_TEMIZLEME_GUN,
                        help=f"Bu günden daha önce silinmiş kayıtlar temizlenir (varsayılan: {COP_TEMIZLEME_GUN})")
    args = parser.parse_args(argv)
    if args.gun < 0:
        parser.error("--gun negatif olamaz")

    db = SessionLocal()
    try:
        sonuc = CopKutusuService(db).purge(gun=args.gun)
        logger.info(
            f"Temizlik tamamlandı: {sonuc['fiyat']} fiyat, {sonuc['recete']} reçete, "
            f"{sonuc['urun']} ürün silindi, {sonuc['atlanan_urun']} ürün kullanımda olduğu için atlandı."
        )
        return sonuc
    finally:
        db.close()

if __name__ == "__main__":
    main()
