"""Fiyat, maliyet ve ödeme tabloları

Revision ID: 4f1c2a9e7b30
Revises:
Create Date: 2026-10-19 10:12:41.503318

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '4f1c2a9e7b30'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

fiyat_tipi = sa.Enum('SATIS', 'ALIS', 'TRANSFER', 'OZEL', name='fiyattipienum')
odeme_durumu = sa.Enum('BEKLIYOR', 'KISMI', 'TAMAMLANDI', name='odemedurumuenum')
siparis_durum = sa.Enum('BEKLEMEDE', 'HAZIRLANACAK', 'HAZIRLANDI', 'TESLIM_EDILDI', 'IPTAL_EDILDI', name='siparisdurumenum')
odeme_turu = sa.Enum('NAKIT', 'KART', 'EFT_HAVALE', 'CEK', 'SENET', name='odemeturuenum')
islem_yone = sa.Enum('BORC', 'ALACAK', name='islemyoneenum')
kaynak_tip = sa.Enum('SIPARIS', 'ODEME', 'MANUEL', name='kaynaktipenum')


def _silinme_kolonlari():
    return [
        sa.Column('silinme_tarihi', sa.DateTime(), nullable=True),
        sa.Column('silen_kullanici_id', sa.Integer(), sa.ForeignKey('kullanicilar.id'), nullable=True),
        sa.Column('silme_sebebi', sa.Text(), nullable=True),
    ]


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'kullanicilar',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('kullanici_adi', sa.String(), nullable=True),
        sa.Column('hashed_sifre', sa.String(), nullable=True),
        sa.Column('yetki', sa.String(), nullable=True),
        sa.Column('yetki_seviyesi', sa.Integer(), nullable=True),
        sa.Column('aktif', sa.Boolean(), nullable=True),
        sa.Column('olusturma_tarihi', sa.DateTime(), nullable=True),
        sa.Column('son_giris_tarihi', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_kullanicilar_kullanici_adi', 'kullanicilar', ['kullanici_adi'], unique=True)

    op.create_table(
        'cari_musteriler',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('kod', sa.String(), nullable=True),
        sa.Column('ad', sa.String(), nullable=True),
        sa.Column('telefon', sa.String(), nullable=True),
        sa.Column('aktif', sa.Boolean(), nullable=True),
        sa.Column('olusturma_tarihi', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_cari_musteriler_kod', 'cari_musteriler', ['kod'], unique=True)

    op.create_table(
        'hammaddeler',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('kod', sa.String(), nullable=True),
        sa.Column('ad', sa.String(), nullable=True),
        sa.Column('birim', sa.String(), nullable=True),
        sa.Column('birim_fiyat', sa.Float(), nullable=True),
        sa.Column('aktif', sa.Boolean(), nullable=True),
        sa.Column('min_stok', sa.Float(), nullable=True),
        sa.Column('kritik_stok', sa.Float(), nullable=True),
        sa.Column('olusturma_tarihi', sa.DateTime(), nullable=True),
        sa.Column('guncelleme_tarihi', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_hammaddeler_kod', 'hammaddeler', ['kod'], unique=True)

    op.create_table(
        'urunler',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('kod', sa.String(), nullable=True),
        sa.Column('ad', sa.String(), nullable=True),
        sa.Column('aciklama', sa.Text(), nullable=True),
        sa.Column('birim', sa.String(), nullable=True),
        sa.Column('aktif', sa.Boolean(), nullable=True),
        sa.Column('olusturma_tarihi', sa.DateTime(), nullable=True),
        *_silinme_kolonlari(),
    )
    op.create_index('ix_urunler_kod', 'urunler', ['kod'], unique=True)
    op.create_index('ix_urunler_silinme_tarihi', 'urunler', ['silinme_tarihi'])

    op.create_table(
        'urun_fiyatlari',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('urun_id', sa.Integer(), sa.ForeignKey('urunler.id'), nullable=False),
        sa.Column('fiyat_tipi', fiyat_tipi, nullable=False),
        sa.Column('birim_fiyat', sa.Float(), nullable=False),
        sa.Column('birim', sa.String(), nullable=True),
        sa.Column('baslangic_tarihi', sa.DateTime(), nullable=False),
        sa.Column('bitis_tarihi', sa.DateTime(), nullable=True),
        sa.Column('aktif', sa.Boolean(), nullable=True),
        sa.Column('aciklama', sa.Text(), nullable=True),
        sa.Column('eski_fiyat', sa.Float(), nullable=True),
        sa.Column('degisim_yuzdesi', sa.Float(), nullable=True),
        sa.Column('olusturan_kullanici_id', sa.Integer(), sa.ForeignKey('kullanicilar.id'), nullable=True),
        sa.Column('olusturma_tarihi', sa.DateTime(), nullable=True),
        *_silinme_kolonlari(),
    )
    op.create_index('ix_urun_fiyatlari_urun_id', 'urun_fiyatlari', ['urun_id'])
    op.create_index('ix_urun_fiyatlari_fiyat_tipi', 'urun_fiyatlari', ['fiyat_tipi'])
    op.create_index('ix_urun_fiyatlari_silinme_tarihi', 'urun_fiyatlari', ['silinme_tarihi'])

    op.create_table(
        'receteler',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('kod', sa.String(), nullable=True),
        sa.Column('ad', sa.String(), nullable=True),
        sa.Column('aciklama', sa.Text(), nullable=True),
        sa.Column('urun_id', sa.Integer(), sa.ForeignKey('urunler.id'), nullable=True),
        sa.Column('porsiyon', sa.Float(), nullable=True),
        sa.Column('toplam_maliyet', sa.Float(), nullable=True),
        sa.Column('birim_maliyet', sa.Float(), nullable=True),
        sa.Column('aktif', sa.Boolean(), nullable=True),
        sa.Column('olusturma_tarihi', sa.DateTime(), nullable=True),
        sa.Column('guncelleme_tarihi', sa.DateTime(), nullable=True),
        *_silinme_kolonlari(),
    )
    op.create_index('ix_receteler_kod', 'receteler', ['kod'], unique=True)
    op.create_index('ix_receteler_urun_id', 'receteler', ['urun_id'])
    op.create_index('ix_receteler_silinme_tarihi', 'receteler', ['silinme_tarihi'])

    op.create_table(
        'recete_kalemleri',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('recete_id', sa.Integer(), sa.ForeignKey('receteler.id'), nullable=False),
        sa.Column('hammadde_id', sa.Integer(), sa.ForeignKey('hammaddeler.id'), nullable=False),
        sa.Column('miktar', sa.Float(), nullable=False),
        sa.Column('birim', sa.String(), nullable=True),
        sa.Column('son_fiyat', sa.Float(), nullable=True),
        sa.Column('maliyet', sa.Float(), nullable=True),
        sa.Column('sira_no', sa.Integer(), nullable=True),
    )
    op.create_index('ix_recete_kalemleri_recete_id', 'recete_kalemleri', ['recete_id'])

    op.create_table(
        'siparisler',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('siparis_no', sa.String(), nullable=True),
        sa.Column('cari_musteri_id', sa.Integer(), sa.ForeignKey('cari_musteriler.id'), nullable=True),
        sa.Column('tarih', sa.DateTime(), nullable=True),
        sa.Column('durum', siparis_durum, nullable=True),
        sa.Column('odeme_durumu', odeme_durumu, nullable=True),
        sa.Column('toplam_tutar', sa.Float(), nullable=True),
        sa.Column('toplam_maliyet', sa.Float(), nullable=True),
        sa.Column('kar_marji', sa.Float(), nullable=True),
        sa.Column('siparis_notlari', sa.Text(), nullable=True),
        sa.Column('olusturan_kullanici_id', sa.Integer(), sa.ForeignKey('kullanicilar.id'), nullable=True),
        sa.Column('olusturma_tarihi', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_siparisler_siparis_no', 'siparisler', ['siparis_no'], unique=True)
    op.create_index('ix_siparisler_cari_musteri_id', 'siparisler', ['cari_musteri_id'])

    op.create_table(
        'siparis_kalemleri',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('siparis_id', sa.Integer(), sa.ForeignKey('siparisler.id'), nullable=False),
        sa.Column('urun_id', sa.Integer(), sa.ForeignKey('urunler.id'), nullable=False),
        sa.Column('urun_adi', sa.String(), nullable=True),
        sa.Column('urun_kodu', sa.String(), nullable=True),
        sa.Column('miktar', sa.Float(), nullable=False),
        sa.Column('birim', sa.String(), nullable=True),
        sa.Column('birim_fiyat', sa.Float(), nullable=False),
        sa.Column('toplam_tutar', sa.Float(), nullable=True),
        sa.Column('birim_maliyet', sa.Float(), nullable=True),
        sa.Column('toplam_maliyet', sa.Float(), nullable=True),
        sa.Column('kar_marji', sa.Float(), nullable=True),
    )
    op.create_index('ix_siparis_kalemleri_siparis_id', 'siparis_kalemleri', ['siparis_id'])
    op.create_index('ix_siparis_kalemleri_urun_id', 'siparis_kalemleri', ['urun_id'])

    op.create_table(
        'cari_odemeler',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('siparis_id', sa.Integer(), sa.ForeignKey('siparisler.id'), nullable=False),
        sa.Column('cari_musteri_id', sa.Integer(), sa.ForeignKey('cari_musteriler.id'), nullable=False),
        sa.Column('tutar', sa.Float(), nullable=False),
        sa.Column('odeme_yontemi', odeme_turu, nullable=True),
        sa.Column('odeme_tarihi', sa.DateTime(), nullable=True),
        sa.Column('aciklama', sa.Text(), nullable=True),
        sa.Column('olusturan_kullanici_id', sa.Integer(), sa.ForeignKey('kullanicilar.id'), nullable=True),
        sa.Column('olusturma_tarihi', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_cari_odemeler_siparis_id', 'cari_odemeler', ['siparis_id'])

    op.create_table(
        'cari_hareketler',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('cari_musteri_id', sa.Integer(), sa.ForeignKey('cari_musteriler.id'), nullable=False),
        sa.Column('siparis_id', sa.Integer(), sa.ForeignKey('siparisler.id'), nullable=True),
        sa.Column('odeme_id', sa.Integer(), sa.ForeignKey('cari_odemeler.id'), nullable=True),
        sa.Column('tarih', sa.DateTime(), nullable=True),
        sa.Column('islem_yone', islem_yone, nullable=False),
        sa.Column('tutar', sa.Float(), nullable=False),
        sa.Column('aciklama', sa.Text(), nullable=True),
        sa.Column('kaynak', kaynak_tip, nullable=True),
        sa.Column('vade_tarihi', sa.Date(), nullable=True),
        sa.Column('olusturma_tarihi_saat', sa.DateTime(), nullable=True),
        sa.Column('olusturan_kullanici_id', sa.Integer(), sa.ForeignKey('kullanicilar.id'), nullable=True),
        sa.CheckConstraint('(siparis_id IS NULL) <> (odeme_id IS NULL)', name='ck_cari_hareket_tek_kaynak'),
    )
    op.create_index('ix_cari_hareketler_cari_musteri_id', 'cari_hareketler', ['cari_musteri_id'])
    op.create_index('ix_cari_hareketler_siparis_id', 'cari_hareketler', ['siparis_id'])
    op.create_index('ix_cari_hareketler_odeme_id', 'cari_hareketler', ['odeme_id'])


def downgrade() -> None:
    """Downgrade schema."""
    for tablo in (
        'cari_hareketler', 'cari_odemeler', 'siparis_kalemleri', 'siparisler',
        'recete_kalemleri', 'receteler', 'urun_fiyatlari', 'urunler',
        'hammaddeler', 'cari_musteriler', 'kullanicilar',
    ):
        op.drop_table(tablo)
    bind = op.get_bind()
    for enum_tipi in (fiyat_tipi, odeme_durumu, siparis_durum, odeme_turu, islem_yone, kaynak_tip):
        enum_tipi.drop(bind, checkfirst=True)
