from typing import Optional


class CekirdekHatasi(Exception):
    """Fiyat, maliyet ve ödeme kurallarının ortak hata sınıfı.

    `detay` çakışan kaydın kimliği gibi hatayı tanımlayan bilgileri taşır.
    """

    def __init__(self, mesaj: str, detay: Optional[dict] = None):
        super().__init__(mesaj)
        self.mesaj = mesaj
        self.detay = detay or {}


class InvalidInputError(CekirdekHatasi):
    """Girdi doğrulama hatası"""
    pass


class NotFoundError(CekirdekHatasi):
    """Kayıt bulunamadı"""
    pass


class InvalidPriceError(CekirdekHatasi):
    """Fiyat sıfır/negatif veya bitiş tarihi başlangıçtan önce"""
    pass


class ProductInactiveError(CekirdekHatasi):
    """Ürün pasif veya silinmiş"""
    pass


class OverlappingPriceError(CekirdekHatasi):
    """Aynı ürün ve fiyat tipi için aktif fiyat aralıkları çakışıyor"""
    pass


class OverpaymentError(CekirdekHatasi):
    """Ödemeler toplamı sipariş tutarını aşıyor"""
    pass


class HasPaymentsError(CekirdekHatasi):
    """Ödemesi olan sipariş zorlanmadan silinemez"""
    pass


class NotDeletedError(CekirdekHatasi):
    """Geri yüklenmek istenen kayıt silinmemiş"""
    pass


class RecipeInUseError(CekirdekHatasi):
    """Reçete hazırlık aşamasındaki siparişlerde kullanılıyor"""
    pass


class PersistenceError(CekirdekHatasi):
    """Veritabanı yazma hatası, işlem geri alındı. Tekrar denenebilir."""
    pass
