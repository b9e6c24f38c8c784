# Business logic services
#
# Import services from their modules, e.g.
#   from app.services.phrase_service import PhraseService
