import os

# Uygulama modülleri import edilmeden önce test veritabanı adresi verilmeli
os.environ["DATABASE_URL"] = "sqlite://"

import itertools
from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from cekirdek_api import semalar
from cekirdek_api.veritabani import Base, get_db
from cekirdek_api.guvenlik import get_current_user
from cekirdek_api.api_ana import app

_sayac = itertools.count(1)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # pysqlite SAVEPOINT desteği için işlem başlangıcını SQLAlchemy'ye bırak
    @event.listens_for(engine, "connect")
    def _connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin(conn):
        conn.exec_driver_sql("BEGIN")

    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    TestSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestSession()
    yield session
    session.close()


@pytest.fixture
def kullanici(db):
    k = semalar.Kullanici(
        kullanici_adi="yonetici", hashed_sifre="-", yetki="ADMIN", yetki_seviyesi=100, aktif=True
    )
    db.add(k)
    db.commit()
    db.refresh(k)
    return k


@pytest.fixture
def client(db, kullanici):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = lambda: kullanici
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def musteri(db):
    m = semalar.CariMusteri(kod="M001", ad="Pastane Ltd.", aktif=True)
    db.add(m)
    db.commit()
    db.refresh(m)
    return m


@pytest.fixture
def urun_olustur(db):
    def _olustur(ad="Baklava", aktif=True, birim="KG"):
        urun = semalar.Urun(ad=ad, kod=f"U{next(_sayac):04d}", aktif=aktif, birim=birim)
        db.add(urun)
        db.commit()
        db.refresh(urun)
        return urun
    return _olustur


@pytest.fixture
def hammadde_olustur(db):
    def _olustur(ad="Un", birim_fiyat=0.0, aktif=True):
        hammadde = semalar.Hammadde(
            ad=ad, kod=f"H{next(_sayac):04d}", birim="KG", birim_fiyat=birim_fiyat, aktif=aktif
        )
        db.add(hammadde)
        db.commit()
        db.refresh(hammadde)
        return hammadde
    return _olustur


@pytest.fixture
def fiyat_ekle(db):
    """Fiyat kaydını çakışma kontrolü olmadan doğrudan yazar."""
    def _ekle(urun_id, birim_fiyat, baslangic, bitis=None, fiyat_tipi=semalar.FiyatTipiEnum.SATIS,
              aktif=True, olusturma_tarihi=None):
        fiyat = semalar.UrunFiyat(
            urun_id=urun_id, fiyat_tipi=fiyat_tipi, birim_fiyat=birim_fiyat,
            baslangic_tarihi=baslangic, bitis_tarihi=bitis, aktif=aktif,
            olusturma_tarihi=olusturma_tarihi or datetime.now(),
        )
        db.add(fiyat)
        db.commit()
        db.refresh(fiyat)
        return fiyat
    return _ekle


@pytest.fixture
def siparis_olustur(db, musteri, urun_olustur):
    """Tek kalemli, verilen tutarda sipariş oluşturur."""
    from cekirdek_api import modeller
    from cekirdek_api.siparis_servisi import SiparisService

    def _olustur(tutar, tarih=None):
        urun = urun_olustur("Tepsi Baklava")
        return SiparisService(db).create_order(modeller.SiparisCreate(
            cari_musteri_id=musteri.id,
            tarih=tarih,
            kalemler=[modeller.SiparisKalemiCreate(urun_id=urun.id, miktar=1, birim_fiyat=tutar)],
        ))
    return _olustur


@pytest.fixture
def recete_olustur(db):
    """kalemler: (hammadde, miktar) veya (hammadde, miktar, kayitli_maliyet) demetleri."""
    def _olustur(kalemler, urun_id=None, porsiyon=1.0, toplam_maliyet=0.0, aktif=True, ad="Reçete"):
        recete = semalar.Recete(
            kod=f"RC{next(_sayac):06d}", ad=ad, urun_id=urun_id, porsiyon=porsiyon,
            toplam_maliyet=toplam_maliyet, birim_maliyet=0.0, aktif=aktif,
        )
        for sira, kalem in enumerate(kalemler, start=1):
            hammadde, miktar = kalem[0], kalem[1]
            kayitli = kalem[2] if len(kalem) > 2 else 0.0
            recete.kalemler.append(semalar.ReceteKalemi(
                hammadde_id=hammadde.id, miktar=miktar, birim="KG", maliyet=kayitli, sira_no=sira
            ))
        db.add(recete)
        db.commit()
        db.refresh(recete)
        return recete
    return _olustur
