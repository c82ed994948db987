from sqlalchemy import (
    Column, Integer, String, Float, Boolean, Date, DateTime, ForeignKey, Text, Enum,
    CheckConstraint
)
from sqlalchemy.orm import relationship
from datetime import datetime
import enum
from .veritabani import Base

# Enum tanımları
class FiyatTipiEnum(str, enum.Enum):
    SATIS = "SATIS"
    ALIS = "ALIS"
    TRANSFER = "TRANSFER"
    OZEL = "OZEL"

class OdemeDurumuEnum(str, enum.Enum):
    BEKLIYOR = "BEKLIYOR"
    KISMI = "KISMI"
    TAMAMLANDI = "TAMAMLANDI"

class SiparisDurumEnum(str, enum.Enum):
    BEKLEMEDE = "BEKLEMEDE"
    HAZIRLANACAK = "HAZIRLANACAK"
    HAZIRLANDI = "HAZIRLANDI"
    TESLIM_EDILDI = "TESLIM_EDILDI"
    IPTAL_EDILDI = "IPTAL_EDILDI"

class OdemeTuruEnum(str, enum.Enum):
    NAKIT = "NAKİT"
    KART = "KART"
    EFT_HAVALE = "EFT/HAVALE"
    CEK = "ÇEK"
    SENET = "SENET"

class IslemYoneEnum(str, enum.Enum): # İşlem yönü için kullanılan enum (ALACAK/BORC)
    BORC = "BORC"
    ALACAK = "ALACAK"

class KaynakTipEnum(str, enum.Enum):
    SIPARIS = "SIPARIS"
    ODEME = "ÖDEME"
    MANUEL = "MANUEL"

class CopTipiEnum(str, enum.Enum):
    URUN = "urun"
    RECETE = "recete"
    FIYAT = "fiyat"

# Tablo Modelleri
class Kullanici(Base):
    __tablename__ = 'kullanicilar'
    __table_args__ = {'extend_existing': True}

    id = Column(Integer, primary_key=True, index=True)
    kullanici_adi = Column(String, unique=True, index=True)
    hashed_sifre = Column(String)
    yetki = Column(String, default="kullanici")
    yetki_seviyesi = Column(Integer, default=50)
    aktif = Column(Boolean, default=True)
    olusturma_tarihi = Column(DateTime, default=datetime.now)
    son_giris_tarihi = Column(DateTime, nullable=True)

class CariMusteri(Base):
    __tablename__ = 'cari_musteriler'
    __table_args__ = {'extend_existing': True}

    id = Column(Integer, primary_key=True, index=True)
    kod = Column(String, unique=True, index=True)
    ad = Column(String, index=True)
    telefon = Column(String, nullable=True)
    aktif = Column(Boolean, default=True)
    olusturma_tarihi = Column(DateTime, default=datetime.now)

class Hammadde(Base):
    __tablename__ = 'hammaddeler'
    __table_args__ = {'extend_existing': True}

    id = Column(Integer, primary_key=True, index=True)
    kod = Column(String, unique=True, index=True)
    ad = Column(String, index=True)
    birim = Column(String, default="KG")
    birim_fiyat = Column(Float, nullable=True, default=0.0)
    aktif = Column(Boolean, default=True)
    min_stok = Column(Float, default=0.0)
    kritik_stok = Column(Float, default=0.0)
    olusturma_tarihi = Column(DateTime, default=datetime.now)
    guncelleme_tarihi = Column(DateTime, nullable=True, onupdate=datetime.now)

class Urun(Base):
    __tablename__ = 'urunler'
    __table_args__ = {'extend_existing': True}

    id = Column(Integer, primary_key=True, index=True)
    kod = Column(String, unique=True, index=True)
    ad = Column(String, index=True)
    aciklama = Column(Text, nullable=True)
    birim = Column(String, default="KG")
    aktif = Column(Boolean, default=True)
    olusturma_tarihi = Column(DateTime, default=datetime.now)
    silinme_tarihi = Column(DateTime, nullable=True, index=True)
    silen_kullanici_id = Column(Integer, ForeignKey('kullanicilar.id'), nullable=True)
    silme_sebebi = Column(Text, nullable=True)

    fiyatlar = relationship("UrunFiyat", back_populates="urun")
    receteler = relationship("Recete", back_populates="urun")

class UrunFiyat(Base):
    __tablename__ = 'urun_fiyatlari'
    __table_args__ = {'extend_existing': True}

    id = Column(Integer, primary_key=True, index=True)
    urun_id = Column(Integer, ForeignKey('urunler.id'), nullable=False, index=True)
    fiyat_tipi = Column(Enum(FiyatTipiEnum), nullable=False, default=FiyatTipiEnum.SATIS, index=True)
    birim_fiyat = Column(Float, nullable=False)
    birim = Column(String, default="KG")
    baslangic_tarihi = Column(DateTime, nullable=False)
    bitis_tarihi = Column(DateTime, nullable=True)
    aktif = Column(Boolean, default=True)
    aciklama = Column(Text, nullable=True)
    eski_fiyat = Column(Float, nullable=True)
    degisim_yuzdesi = Column(Float, nullable=True)
    olusturan_kullanici_id = Column(Integer, ForeignKey('kullanicilar.id'), nullable=True)
    olusturma_tarihi = Column(DateTime, default=datetime.now)
    silinme_tarihi = Column(DateTime, nullable=True, index=True)
    silen_kullanici_id = Column(Integer, ForeignKey('kullanicilar.id'), nullable=True)
    silme_sebebi = Column(Text, nullable=True)

    urun = relationship("Urun", back_populates="fiyatlar")

class Recete(Base):
    __tablename__ = 'receteler'
    __table_args__ = {'extend_existing': True}

    id = Column(Integer, primary_key=True, index=True)
    kod = Column(String, unique=True, index=True)
    ad = Column(String, index=True)
    aciklama = Column(Text, nullable=True)
    urun_id = Column(Integer, ForeignKey('urunler.id'), nullable=True, index=True)
    porsiyon = Column(Float, default=1.0)
    toplam_maliyet = Column(Float, default=0.0)
    birim_maliyet = Column(Float, default=0.0)
    aktif = Column(Boolean, default=True)
    olusturma_tarihi = Column(DateTime, default=datetime.now)
    guncelleme_tarihi = Column(DateTime, nullable=True)
    silinme_tarihi = Column(DateTime, nullable=True, index=True)
    silen_kullanici_id = Column(Integer, ForeignKey('kullanicilar.id'), nullable=True)
    silme_sebebi = Column(Text, nullable=True)

    urun = relationship("Urun", back_populates="receteler")
    kalemler = relationship(
        "ReceteKalemi",
        back_populates="recete",
        cascade="all, delete-orphan",
        order_by="ReceteKalemi.sira_no"
    )

class ReceteKalemi(Base):
    __tablename__ = 'recete_kalemleri'
    __table_args__ = {'extend_existing': True}

    id = Column(Integer, primary_key=True, index=True)
    recete_id = Column(Integer, ForeignKey('receteler.id'), nullable=False, index=True)
    hammadde_id = Column(Integer, ForeignKey('hammaddeler.id'), nullable=False)
    miktar = Column(Float, nullable=False)
    birim = Column(String, default="KG")
    son_fiyat = Column(Float, default=0.0)
    maliyet = Column(Float, default=0.0)
    sira_no = Column(Integer, default=1)

    recete = relationship("Recete", back_populates="kalemler")
    hammadde = relationship("Hammadde")

class Siparis(Base):
    __tablename__ = 'siparisler'
    __table_args__ = {'extend_existing': True}

    id = Column(Integer, primary_key=True, index=True)
    siparis_no = Column(String, unique=True, index=True)
    cari_musteri_id = Column(Integer, ForeignKey('cari_musteriler.id'), nullable=True, index=True)
    tarih = Column(DateTime, default=datetime.now)
    durum = Column(Enum(SiparisDurumEnum), default=SiparisDurumEnum.BEKLEMEDE)
    odeme_durumu = Column(Enum(OdemeDurumuEnum), default=OdemeDurumuEnum.BEKLIYOR)
    toplam_tutar = Column(Float, default=0.0)
    toplam_maliyet = Column(Float, default=0.0)
    kar_marji = Column(Float, default=0.0)
    siparis_notlari = Column(Text, nullable=True)
    olusturan_kullanici_id = Column(Integer, ForeignKey('kullanicilar.id'), nullable=True)
    olusturma_tarihi = Column(DateTime, default=datetime.now)

    cari_musteri = relationship("CariMusteri")
    kalemler = relationship("SiparisKalemi", back_populates="siparis")

class SiparisKalemi(Base):
    __tablename__ = 'siparis_kalemleri'
    __table_args__ = {'extend_existing': True}

    id = Column(Integer, primary_key=True, index=True)
    siparis_id = Column(Integer, ForeignKey('siparisler.id'), nullable=False, index=True)
    urun_id = Column(Integer, ForeignKey('urunler.id'), nullable=False, index=True)
    # Sipariş anındaki ürün bilgileri, sonradan değişmez
    urun_adi = Column(String)
    urun_kodu = Column(String)
    miktar = Column(Float, nullable=False)
    birim = Column(String, default="KG")
    birim_fiyat = Column(Float, nullable=False)
    toplam_tutar = Column(Float, default=0.0)
    birim_maliyet = Column(Float, default=0.0)
    toplam_maliyet = Column(Float, default=0.0)
    kar_marji = Column(Float, default=0.0)

    siparis = relationship("Siparis", back_populates="kalemler")
    urun = relationship("Urun")

class CariOdeme(Base):
    __tablename__ = 'cari_odemeler'
    __table_args__ = {'extend_existing': True}

    id = Column(Integer, primary_key=True, index=True)
    siparis_id = Column(Integer, ForeignKey('siparisler.id'), nullable=False, index=True)
    cari_musteri_id = Column(Integer, ForeignKey('cari_musteriler.id'), nullable=False, index=True)
    tutar = Column(Float, nullable=False)
    odeme_yontemi = Column(Enum(OdemeTuruEnum), default=OdemeTuruEnum.NAKIT)
    odeme_tarihi = Column(DateTime, default=datetime.now)
    aciklama = Column(Text, nullable=True)
    olusturan_kullanici_id = Column(Integer, ForeignKey('kullanicilar.id'), nullable=True)
    olusturma_tarihi = Column(DateTime, default=datetime.now)

# Her hareket ya bir siparişe (BORC) ya da bir ödemeye (ALACAK) bağlıdır.
class CariHareket(Base):
    __tablename__ = 'cari_hareketler'
    __table_args__ = (
        CheckConstraint('(siparis_id IS NULL) <> (odeme_id IS NULL)', name='ck_cari_hareket_tek_kaynak'),
        {'extend_existing': True},
    )

    id = Column(Integer, primary_key=True, index=True)
    cari_musteri_id = Column(Integer, ForeignKey('cari_musteriler.id'), nullable=False, index=True)
    siparis_id = Column(Integer, ForeignKey('siparisler.id'), nullable=True, index=True)
    odeme_id = Column(Integer, ForeignKey('cari_odemeler.id'), nullable=True, index=True)
    tarih = Column(DateTime, default=datetime.now)
    islem_yone = Column(Enum(IslemYoneEnum), nullable=False)
    tutar = Column(Float, nullable=False)
    aciklama = Column(Text, nullable=True)
    kaynak = Column(Enum(KaynakTipEnum), default=KaynakTipEnum.MANUEL)
    vade_tarihi = Column(Date, nullable=True)

    olusturma_tarihi_saat = Column(DateTime, default=datetime.now)
    olusturan_kullanici_id = Column(Integer, ForeignKey('kullanicilar.id'), nullable=True)
