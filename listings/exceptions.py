# listings/exceptions.py

from rest_framework import status


class ListingError(Exception):
    """Base for failures that are reported to the user and end a request cleanly."""

    default_message = "Something went wrong"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message=None, errors=None):
        self.message = message or self.default_message
        self.errors = errors
        super().__init__(self.message)


class ValidationError(ListingError):
    default_message = "Invalid listing details"


class UploadError(ListingError):
    default_message = "Unable to upload images"
    status_code = status.HTTP_502_BAD_GATEWAY


class GeocodingUnavailable(ListingError):
    default_message = "Unable to look up that address right now"
    status_code = status.HTTP_502_BAD_GATEWAY


class SubmissionInProgress(ListingError):
    default_message = "A submission is already in progress"
    status_code = status.HTTP_409_CONFLICT


class ListingNotFound(ListingError):
    default_message = "Listing does not exist"
    status_code = status.HTTP_404_NOT_FOUND


class NotListingOwner(ListingError):
    default_message = "You cannot edit that listing"
    status_code = status.HTTP_403_FORBIDDEN


class PersistenceError(Exception):
    """The listing store could not write a document. Not handled by the views."""
