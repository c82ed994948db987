from pydantic import BaseModel, ConfigDict
from datetime import datetime
from typing import List, Optional

from .semalar import (
    FiyatTipiEnum, OdemeDurumuEnum, SiparisDurumEnum, OdemeTuruEnum,
    IslemYoneEnum, KaynakTipEnum, CopTipiEnum
)

# Ortak Temel Modeller
class BaseOrmModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

# Kimlik doğrulama
class Token(BaseModel):
    access_token: str
    token_type: str
    kullanici_id: Optional[int] = None

class TokenData(BaseModel):
    kullanici_adi: Optional[str] = None

class KullaniciLogin(BaseModel):
    kullanici_adi: str
    sifre: str

# Hammaddeler
class HammaddeBase(BaseOrmModel):
    kod: str
    ad: str
    birim: str = "KG"
    birim_fiyat: Optional[float] = 0.0
    min_stok: float = 0.0
    kritik_stok: float = 0.0

class HammaddeCreate(HammaddeBase):
    pass

class HammaddeRead(HammaddeBase):
    id: int
    aktif: bool

class HammaddeListResponse(BaseModel):
    items: List[HammaddeRead]
    total: int

# Fiyatlar
class FiyatCreate(BaseModel):
    urun_id: int
    fiyat_tipi: FiyatTipiEnum = FiyatTipiEnum.SATIS
    birim_fiyat: float
    birim: str = "KG"
    baslangic_tarihi: datetime
    bitis_tarihi: Optional[datetime] = None
    aciklama: Optional[str] = None
    eskiyi_kapat: bool = False

class FiyatUpdate(BaseModel):
    birim_fiyat: Optional[float] = None
    birim: Optional[str] = None
    baslangic_tarihi: Optional[datetime] = None
    bitis_tarihi: Optional[datetime] = None
    aciklama: Optional[str] = None

class FiyatRead(BaseOrmModel):
    id: int
    urun_id: int
    fiyat_tipi: FiyatTipiEnum
    birim_fiyat: float
    birim: Optional[str] = None
    baslangic_tarihi: datetime
    bitis_tarihi: Optional[datetime] = None
    aktif: bool
    aciklama: Optional[str] = None
    eski_fiyat: Optional[float] = None
    degisim_yuzdesi: Optional[float] = None
    olusturma_tarihi: Optional[datetime] = None

class FiyatListResponse(BaseModel):
    items: List[FiyatRead]
    total: int

# Reçeteler
class ReceteKalemiCreate(BaseModel):
    hammadde_id: int
    miktar: float
    birim: Optional[str] = None

class ReceteCreate(BaseModel):
    ad: str
    urun_id: Optional[int] = None
    porsiyon: float = 1.0
    aciklama: Optional[str] = None
    kalemler: List[ReceteKalemiCreate]

class ReceteUpdate(BaseModel):
    ad: Optional[str] = None
    urun_id: Optional[int] = None
    porsiyon: Optional[float] = None
    aciklama: Optional[str] = None
    aktif: Optional[bool] = None
    kalemler: Optional[List[ReceteKalemiCreate]] = None

class ReceteKalemiRead(BaseOrmModel):
    id: int
    hammadde_id: int
    miktar: float
    birim: Optional[str] = None
    son_fiyat: Optional[float] = None
    maliyet: Optional[float] = None
    sira_no: Optional[int] = None

class ReceteRead(BaseOrmModel):
    id: int
    kod: str
    ad: str
    urun_id: Optional[int] = None
    porsiyon: Optional[float] = None
    toplam_maliyet: Optional[float] = None
    birim_maliyet: Optional[float] = None
    aktif: bool
    aciklama: Optional[str] = None
    kalemler: List[ReceteKalemiRead] = []

# Maliyet raporları
class MaliyetKalemi(BaseModel):
    kalem_id: Optional[int] = None
    hammadde_id: int
    hammadde_adi: Optional[str] = None
    miktar: float
    birim: Optional[str] = None
    birim_fiyat: float
    fiyat_kaynagi: str
    maliyet: float
    kayitli_maliyet: Optional[float] = None
    maliyet_yuzdesi: Optional[float] = None
    maliyet_farki: Optional[float] = None

class MarjAnalizi(BaseModel):
    satis_fiyati: float
    birim_maliyet: float
    brut_kar: float
    kar_marji_yuzdesi: float
    markup_yuzdesi: float

class MaliyetRaporu(BaseModel):
    recete_id: int
    recete_adi: Optional[str] = None
    bulundu: bool = True
    porsiyon: float
    toplam_maliyet: float
    birim_maliyet: float
    kayitli_toplam_maliyet: float
    kayitli_birim_maliyet: float
    maliyet_farki: float
    kalemler: Optional[List[MaliyetKalemi]] = None
    marj: Optional[MarjAnalizi] = None
    hesaplama_tarihi: datetime

class HesaplamaIstegi(BaseModel):
    recete_id: Optional[int] = None
    kalemler: Optional[List[ReceteKalemiCreate]] = None
    porsiyon: Optional[float] = None
    kaydet: bool = False

class HesaplamaSonucu(BaseModel):
    recete_id: Optional[int] = None
    porsiyon: float
    toplam_maliyet: float
    birim_maliyet: float
    kalemler: List[MaliyetKalemi]
    atlanan_hammaddeler: List[int] = []
    kaydedildi: bool = False

class TopluHesaplamaIstegi(BaseModel):
    recete_idleri: Optional[List[int]] = None
    sadece_aktif: bool = True

class TopluHesaplamaSonucu(BaseModel):
    guncellenen: int
    atlanan: List[int] = []

# Siparişler
class SiparisKalemiCreate(BaseModel):
    urun_id: int
    miktar: float
    birim_fiyat: Optional[float] = None

class SiparisCreate(BaseModel):
    cari_musteri_id: int
    tarih: Optional[datetime] = None
    durum: SiparisDurumEnum = SiparisDurumEnum.BEKLEMEDE
    siparis_notlari: Optional[str] = None
    kalemler: List[SiparisKalemiCreate]

class SiparisKalemiRead(BaseOrmModel):
    id: int
    urun_id: int
    urun_adi: Optional[str] = None
    urun_kodu: Optional[str] = None
    miktar: float
    birim_fiyat: float
    toplam_tutar: float
    birim_maliyet: Optional[float] = None
    toplam_maliyet: Optional[float] = None

class SiparisRead(BaseOrmModel):
    id: int
    siparis_no: str
    cari_musteri_id: Optional[int] = None
    tarih: Optional[datetime] = None
    durum: SiparisDurumEnum
    odeme_durumu: OdemeDurumuEnum
    toplam_tutar: float
    toplam_maliyet: Optional[float] = None
    kar_marji: Optional[float] = None
    siparis_notlari: Optional[str] = None
    kalemler: List[SiparisKalemiRead] = []

# Ödemeler
class OdemeCreate(BaseModel):
    tutar: float
    odeme_yontemi: OdemeTuruEnum = OdemeTuruEnum.NAKIT
    odeme_tarihi: Optional[datetime] = None
    aciklama: Optional[str] = None

class OdemeRead(BaseOrmModel):
    id: int
    siparis_id: int
    cari_musteri_id: int
    tutar: float
    odeme_yontemi: OdemeTuruEnum
    odeme_tarihi: Optional[datetime] = None
    aciklama: Optional[str] = None

class OdemeListResponse(BaseModel):
    items: List[OdemeRead]
    total: int
    toplam_odenen: float
    siparis_toplami: float
    kalan: float
    odeme_durumu: OdemeDurumuEnum

class OdemeSilmeSonucu(BaseModel):
    toplam_odenen: float
    siparis_toplami: float
    odeme_durumu: OdemeDurumuEnum

class SiparisSilmeSonucu(BaseModel):
    siparis_id: int
    silinen_odeme: int
    silinen_hareket: int
    silinen_kalem: int

# Cari hareketler
class CariHareketRead(BaseOrmModel):
    id: int
    cari_musteri_id: int
    siparis_id: Optional[int] = None
    odeme_id: Optional[int] = None
    tarih: Optional[datetime] = None
    islem_yone: IslemYoneEnum
    tutar: float
    kaynak: Optional[KaynakTipEnum] = None
    aciklama: Optional[str] = None

class CariBakiyeRead(BaseModel):
    cari_musteri_id: int
    net_bakiye: float
    hareketler: List[CariHareketRead] = []

# Çöp kutusu
class CopKaydi(BaseModel):
    id: int
    tip: CopTipiEnum
    ad: Optional[str] = None
    kod: Optional[str] = None
    silinme_tarihi: datetime
    silen_kullanici_id: Optional[int] = None
    silme_sebebi: Optional[str] = None
    ek_bilgi: Optional[dict] = None

class CopListResponse(BaseModel):
    items: List[CopKaydi]
    total: int
    sayfa: int
    limit: int

class GeriYukleIstegi(BaseModel):
    tip: CopTipiEnum
    id: int

class GeriYukleSonucu(BaseModel):
    tip: CopTipiEnum
    id: int
    aktif: bool
