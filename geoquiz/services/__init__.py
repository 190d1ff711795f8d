from geoquiz.services.ledger import Attribution, Ledger, NewPhoto
from geoquiz.services.migration import migrate_legacy_photos
from geoquiz.services.uploads import ImageStore

__all__ = ["Attribution", "ImageStore", "Ledger", "NewPhoto", "migrate_legacy_photos"]
