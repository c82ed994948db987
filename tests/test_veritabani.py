import pytest

from cekirdek_api import semalar
from cekirdek_api.veritabani import islem
from cekirdek_api.hatalar import PersistenceError, InvalidInputError


class TestIslem:

    def test_basarili_islem_commit_edilir(self, db):
        with islem(db):
            db.add(semalar.Hammadde(kod="H1", ad="Un"))
        db.rollback()
        assert db.query(semalar.Hammadde).count() == 1

    def test_veritabani_hatasi_persistence_error_olur(self, db, hammadde_olustur):
        mevcut = hammadde_olustur("Un")
        with pytest.raises(PersistenceError) as exc:
            with islem(db):
                db.add(semalar.Hammadde(kod="YENI", ad="Şeker"))
                db.add(semalar.Hammadde(kod=mevcut.kod, ad="Kopya"))
                db.flush()
        assert "hata" in exc.value.detay
        # İşlemin tamamı geri alınır
        assert db.query(semalar.Hammadde).count() == 1

    def test_is_kurali_hatasi_oldugu_gibi_gecer(self, db):
        with pytest.raises(InvalidInputError):
            with islem(db):
                db.add(semalar.Hammadde(kod="H2", ad="Tuz"))
                db.flush()
                raise InvalidInputError("geçersiz")
        assert db.query(semalar.Hammadde).count() == 0

    def test_kaynaksiz_cari_hareket_yazilamaz(self, db, musteri):
        """Cari hareket sipariş ya da ödemeden birine bağlı olmalıdır."""
        with pytest.raises(PersistenceError):
            with islem(db):
                db.add(semalar.CariHareket(
                    cari_musteri_id=musteri.id, islem_yone=semalar.IslemYoneEnum.BORC, tutar=10.0
                ))
                db.flush()
        assert db.query(semalar.CariHareket).count() == 0
