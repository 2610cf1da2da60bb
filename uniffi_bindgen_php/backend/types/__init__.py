from uniffi_bindgen_php.backend.types.base import CodeType, BufReader, BufWriter

__all__ = ["CodeType", "BufReader", "BufWriter"]
