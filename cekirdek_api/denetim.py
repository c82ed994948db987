import logging
from datetime import datetime
from typing import Callable, List, Optional

logger = logging.getLogger("denetim")

DenetimSink = Callable[[dict], None]

_sinkler: List[DenetimSink] = []


def _log_sink(kayit: dict) -> None:
    logger.info(
        f"[{kayit['islem']}] {kayit['aciklama']} "
        f"(kullanıcı: {kayit.get('kullanici_id')}, detay: {kayit.get('detay')})"
    )


def sink_ekle(sink: DenetimSink) -> None:
    """Denetim kayıtlarını alacak yeni bir hedef ekler (ör. ayrı bir log tablosu)."""
    if sink not in _sinkler:
        _sinkler.append(sink)


def sink_kaldir(sink: DenetimSink) -> None:
    if sink in _sinkler:
        _sinkler.remove(sink)


def denetim_kaydi(
    islem: str,
    aciklama: str,
    kullanici_id: Optional[int] = None,
    once: Optional[dict] = None,
    sonra: Optional[dict] = None,
    **detay
) -> dict:
    """
    Tamamlanmış bir işlemi denetim hedeflerine iletir.

    Hedeflerden birinin hata vermesi işlemi etkilemez; hata sadece loglanır.
    Bu fonksiyon iş işlemi commit edildikten sonra çağrılmalıdır.
    """
    kayit = {
        "islem": islem,
        "aciklama": aciklama,
        "kullanici_id": kullanici_id,
        "once": once,
        "sonra": sonra,
        "detay": detay,
        "zaman": datetime.now(),
    }
    for sink in [_log_sink, *_sinkler]:
        try:
            sink(kayit)
        except Exception as e:
            logger.warning(f"Denetim kaydı iletilemedi ({islem}): {e}")
    return kayit
