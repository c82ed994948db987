from contextlib import contextmanager
from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, declarative_base, Session
import logging

from .config import DATABASE_URL
from .hatalar import PersistenceError

logger = logging.getLogger(__name__)

# Ortam değişkenlerinin gelip gelmediğini kontrol edin
if not DATABASE_URL:
    logger.error("Veritabanı bağlantı bilgileri .env dosyasından eksik veya hatalı. Lütfen .env dosyasını kontrol edin.")
    # Uygulamanın başlamasını engellemek için hata fırlatılır
    raise ValueError("Veritabanı bağlantı bilgileri eksik.")

# NOT: Bağlantı testi burada yapılmaz, bağlantı hataları ilk veritabanı işlemi sırasında ortaya çıkar.
engine = create_engine(DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


# Veritabanı oturumu almak için bağımlılık fonksiyonu
def get_db():
    db = SessionLocal()
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
        yield db
    except SQLAlchemyError as e:
        logger.critical(f"Veritabanı bağlantısı kurulamadı! .env bilgilerinin doğru olduğundan emin olun. Hata: {e}")
        raise
    finally:
        db.close()


@contextmanager
def islem(db: Session):
    """Bloğu tek bir veritabanı işlemi olarak çalıştırır.

    Başarılı olursa commit eder. Herhangi bir hatada rollback yapar;
    SQLAlchemy hataları PersistenceError olarak yeniden fırlatılır,
    iş kuralı hataları olduğu gibi geçer.
    """
    try:
        yield db
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Veritabanı işlemi geri alındı: {e}", exc_info=True)
        raise PersistenceError("Veritabanı işlemi tamamlanamadı, tekrar deneyin.", detay={"hata": str(e)}) from e
    except Exception:
        db.rollback()
        raise
