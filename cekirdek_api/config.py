import os
from dotenv import load_dotenv

# Projenin kök dizininde .env dosyasını yükleyin
load_dotenv()

# JWT için gizli anahtar
# Ortam değişkeninden alın, yoksa varsayılan bir değer kullanın.
SECRET_KEY = os.getenv("SECRET_KEY", "gizli-anahtar-cok-gizli-kimse-bilmesin")

# Token için kullanılacak algoritma
ALGORITHM = os.getenv("ALGORITHM", "HS256")

# Token'ın geçerlilik süresi
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "30"))

# Veritabanı bağlantısı: DATABASE_URL verilmişse o kullanılır,
# verilmemişse PostgreSQL parçalarından oluşturulur.
DB_USER = os.getenv("DB_USER")
DB_PASSWORD = os.getenv("DB_PASSWORD")
DB_HOST = os.getenv("DB_HOST")
DB_PORT = os.getenv("DB_PORT")
DB_NAME = os.getenv("DB_NAME")

DATABASE_URL = os.getenv("DATABASE_URL")
if not DATABASE_URL and all([DB_USER, DB_PASSWORD, DB_HOST, DB_PORT, DB_NAME]):
    DATABASE_URL = f"postgresql://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}"

# Yetki seviyeleri (kullanıcının yetki_seviyesi alanı ile karşılaştırılır)
YETKI_ODEME = 50
YETKI_FIYAT_GORME = 60
YETKI_COP_GORME = 60
YETKI_MALIYET_GORME = 70
YETKI_MALIYET_KAYDET = 70
YETKI_FIYAT_YONETIM = 70
YETKI_RECETE_YONETIM = 70
YETKI_GERI_YUKLE = 70
YETKI_SIPARIS_SILME = 70
YETKI_MARJ_GORME = 80
YETKI_TOPLU_HESAPLAMA = 80
YETKI_FIYAT_SILME = 80
YETKI_RECETE_SILME = 80

# Çöp kutusu
COP_VARSAYILAN_LIMIT = int(os.getenv("COP_VARSAYILAN_LIMIT", "50"))
COP_MAKSIMUM_LIMIT = 100
COP_TEMIZLEME_GUN = int(os.getenv("COP_TEMIZLEME_GUN", "30"))
