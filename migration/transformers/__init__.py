from migration.transformers.normalizer import RowNormalizer, to_iso_timestamp

__all__ = ["RowNormalizer", "to_iso_timestamp"]
