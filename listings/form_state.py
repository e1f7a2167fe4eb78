# listings/form_state.py

from .exceptions import ValidationError


def parse_bool(raw):
    """Boolean inputs arrive as the literal text "true" or "false"."""
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, str) and raw.strip().lower() in ('true', 'false'):
        return raw.strip().lower() == 'true'
    raise ValueError(f"{raw!r} is not true or false")


def parse_int(raw):
    if isinstance(raw, bool):
        raise ValueError(f"{raw!r} is not a whole number")
    if isinstance(raw, int):
        return raw
    return int(str(raw).strip())


def parse_float(raw):
    if isinstance(raw, bool):
        raise ValueError(f"{raw!r} is not a number")
    return float(str(raw).strip())


def parse_text(raw):
    return str(raw)


PARSERS = {
    bool: parse_bool,
    int: parse_int,
    float: parse_float,
    str: parse_text,
}

# Field name -> expected type. Anything not listed here is rejected.
FIELD_REGISTRY = {
    'type': str,
    'name': str,
    'bedrooms': int,
    'bathrooms': int,
    'parking': bool,
    'furnished': bool,
    'address': str,
    'offer': bool,
    'regular_price': int,
    'discounted_price': int,
    'latitude': float,
    'longitude': float,
}

COVER_FIELD = 'cover_image'
GALLERY_FIELD = 'images'

DEFAULTS = {
    'type': 'rent',
    'name': '',
    'bedrooms': 1,
    'bathrooms': 1,
    'parking': False,
    'furnished': False,
    'address': '',
    'offer': False,
    'regular_price': 0,
    'discounted_price': 0,
    'latitude': 0.0,
    'longitude': 0.0,
}


class ListingFormState:
    """
    In-progress listing fields plus the cover and gallery image selections.

    Each mutation merges exactly one field. Values are parsed according to
    FIELD_REGISTRY; range checks happen later, when the form is submitted.
    """

    def __init__(self, fields=None):
        self.fields = dict(DEFAULTS)
        if fields:
            self.fields.update(fields)
        self.cover_image = None
        self.gallery = []

    @classmethod
    def defaults(cls):
        return cls()

    @classmethod
    def from_listing(cls, document):
        """Seed the edit form from a stored listing document. Images start empty."""
        geolocation = document.get('geolocation') or {}
        fields = {field: document[field] for field in FIELD_REGISTRY if field in document}
        fields['address'] = document.get('location', '')
        fields['latitude'] = geolocation.get('lat', 0.0)
        fields['longitude'] = geolocation.get('lng', 0.0)
        if fields.get('discounted_price') is None:
            fields['discounted_price'] = 0
        return cls(fields)

    def __getitem__(self, field_id):
        return self.fields[field_id]

    @property
    def gallery_enabled(self):
        return self.cover_image is not None

    @property
    def images(self):
        """Cover first, then the gallery, in selection order."""
        if self.cover_image is None:
            return list(self.gallery)
        return [self.cover_image, *self.gallery]

    def mutate(self, field_id, value=None, files=None):
        if files is not None:
            self._select_files(field_id, list(files))
            return

        kind = FIELD_REGISTRY.get(field_id)
        if kind is None:
            raise ValidationError(f"Unknown field: {field_id}")
        try:
            self.fields[field_id] = PARSERS[kind](value)
        except (TypeError, ValueError):
            raise ValidationError(
                f"{field_id.replace('_', ' ').capitalize()} must be a valid {kind.__name__}",
                errors={field_id: [f"Invalid value {value!r}"]},
            )

    def merge(self, data, files=None):
        """Apply every known field found in request data, then the cover, then the gallery."""
        for field_id in FIELD_REGISTRY:
            if field_id in data:
                self.mutate(field_id, data.get(field_id))
        if files is None:
            return
        cover = files.getlist(COVER_FIELD)
        if cover:
            self.mutate(COVER_FIELD, files=cover)
        gallery = files.getlist(GALLERY_FIELD)
        if gallery:
            self.mutate(GALLERY_FIELD, files=gallery)

    def as_dict(self):
        data = dict(self.fields)
        data[GALLERY_FIELD] = self.images
        return data

    def as_payload(self):
        """JSON-safe view of the form for pre-filling an edit screen."""
        payload = dict(self.fields)
        payload['gallery_enabled'] = self.gallery_enabled
        return payload

    def _select_files(self, field_id, files):
        if field_id == COVER_FIELD:
            self.cover_image = files[0] if files else None
            if self.cover_image is None:
                self.gallery = []
        elif field_id == GALLERY_FIELD:
            if not self.gallery_enabled:
                raise ValidationError("Please select a cover image first")
            self.gallery = files
        else:
            raise ValidationError(f"{field_id} does not accept files")
