# Eksik tabloları oluşturur ve varsayılan verileri ekler.
import os
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
import logging

# Loglama ayarları
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

from cekirdek_api.config import DATABASE_URL
from cekirdek_api.semalar import Base, Kullanici, CariMusteri
from cekirdek_api.guvenlik import get_password_hash

def create_or_update_tables():
    """Veritabanında eksik olan tabloları oluşturan ve varsayılan verileri ekleyen fonksiyon."""
    engine = create_engine(DATABASE_URL)
    Session = sessionmaker(bind=engine)
    db = Session()

    try:
        # Tüm tabloları oluştur, sadece eksik olanları ekler.
        logger.info("Eksik veritabanı tabloları kontrol ediliyor ve oluşturuluyor...")
        Base.metadata.create_all(bind=engine)
        logger.info("Tablo kontrolü tamamlandı.")

        # Sistem yöneticisi (ilk giriş için, şifre ortam değişkeninden)
        if not db.query(Kullanici).filter_by(kullanici_adi="admin").first():
            admin_sifre = os.getenv("ADMIN_SIFRE", "admin")
            db.add(Kullanici(
                kullanici_adi="admin",
                hashed_sifre=get_password_hash(admin_sifre),
                yetki="ADMIN",
                yetki_seviyesi=100,
                aktif=True
            ))
            logger.info("Varsayılan yönetici kullanıcısı eklendi.")

        # Varsayılan Perakende Müşterisi
        if not db.query(CariMusteri).filter_by(kod="PERAKENDE_MUSTERI").first():
            db.add(CariMusteri(ad="Perakende Müşterisi", kod="PERAKENDE_MUSTERI", aktif=True))
            logger.info("Varsayılan perakende müşterisi eklendi.")

        db.commit()
    except Exception as e:
        logger.error(f"Veritabanı işlemleri sırasında hata oluştu: {e}")
        db.rollback()
        raise
    finally:
        db.close()

if __name__ == "__main__":
    logger.info("create_or_update_pg_tables.py çalıştırılıyor...")
    create_or_update_tables()
    logger.info("create_or_update_pg_tables.py tamamlandı.")
