"""script_scout.deobfuscate: Нормализация обфусцированного JavaScript.

Обёртка над распаковщиками jsbeautifier (P.A.C.K.E.R., javascriptobfuscator,
myobfuscate, urlencode). Для необфусцированного кода функция возвращает
текст без изменений. Функция чистая, поэтому результат кешируется по тексту.
"""

from __future__ import annotations

import logging
from functools import lru_cache

from jsbeautifier.unpackers import UnpackingError, run

__all__ = ["deobfuscate"]

_log = logging.getLogger("ScriptScout")


@lru_cache(maxsize=256)
def deobfuscate(text: str) -> str:
    """Return *text* with any recognised packing undone."""
    try:
        return run(text)
    except (UnpackingError, ValueError, IndexError) as exc:
        # распаковщик узнал сигнатуру, но не смог разобрать код
        _log.debug("Unpacking failed, keeping original text: %s", exc)
        return text
