"""
Phrase Transfer Service - JSON/CSV/XLSX export and import of phrase sets
"""
import csv
import io
import json
import logging
import os
import zipfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from openpyxl import Workbook, load_workbook
from openpyxl.utils.exceptions import InvalidFileException
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import flag_modified

from app.core.exceptions import ErrorCode, ValidationError
from app.core.hashing import compute_content_hash, compute_source_hash
from app.core.validation import validate_locale_code
from app.models.phrase import Phrase, PhraseStatus
from app.models.translation import TranslationMap, TranslationStatus, utcnow
from app.schemas.transfer import ExportFormat, ExportResult, ImportResult
from app.services.project_lookup import ProjectLookupService

logger = logging.getLogger(__name__)

BASE_COLUMNS = ["id", "key", "sourceText", "context", "status", "isArchived", "tags"]
LOCALE_FIELDS = ("text", "status", "isHuman")

MIME_TYPES = {
    ExportFormat.JSON: "application/json",
    ExportFormat.CSV: "text/csv",
    ExportFormat.XLSX: "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}

_TRUE_VALUES = {"true", "1", "yes", "y"}


def _parse_bool(value: Any, default: bool = False) -> bool:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    return str(value).strip().lower() in _TRUE_VALUES


def _cell(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value)
    return text if text != "" else None


def _join_tags(tags: List[str]) -> str:
    """Tags as one CSV-quoted cell so a tag may contain commas."""
    buffer = io.StringIO()
    csv.writer(buffer, lineterminator="").writerow(tags)
    return buffer.getvalue()


def _split_tags(value: str) -> List[str]:
    fields = next(csv.reader([value]), [])
    return [t.strip() for t in fields if t.strip()]


class RowError(Exception):
    """A single import row is unusable."""


def _parse_tags(raw: Any) -> List[str]:
    if raw is None or raw == "":
        return []
    if isinstance(raw, str):
        return list(dict.fromkeys(_split_tags(raw)))
    if not isinstance(raw, list) or not all(isinstance(t, str) for t in raw):
        raise RowError("tags must be a list of strings")
    return list(dict.fromkeys(t.strip() for t in raw if t.strip()))


class PhraseTransferService:
    """Serializes a project's phrases to files and loads them back"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def export_phrases(
        self,
        project_id: int,
        fmt: str,
        locales: Optional[Sequence[str]] = None,
        statuses: Optional[Sequence[str]] = None,
    ) -> ExportResult:
        """
        Export a project's phrases

        Args:
            project_id: Project ID
            fmt: "json", "csv" or "xlsx"
            locales: Only these translation locales (all discovered locales when omitted)
            statuses: Only phrases with these lifecycle statuses

        Returns:
            File bytes with filename and MIME type

        Raises:
            ValidationError: Unsupported format or status (nothing is queried)
            NotFoundError: Unknown project
        """
        try:
            export_format = ExportFormat(str(fmt).lower())
        except ValueError:
            raise ValidationError(
                f"Unsupported export format: {fmt}",
                details={"format": fmt, "supported": [f.value for f in ExportFormat]},
                error_code=ErrorCode.UNSUPPORTED_FORMAT,
            )
        try:
            status_filter = [PhraseStatus(s) for s in statuses or []]
        except ValueError as e:
            raise ValidationError(f"Invalid status filter: {e}", details={"field": "statuses"})
        locale_filter = [validate_locale_code(loc) for loc in locales or []]

        project = await ProjectLookupService(self.db).get_by_id(project_id)
        project_key = project.project_key

        stmt = select(Phrase).where(Phrase.project_id == project_id).order_by(Phrase.id)
        if status_filter:
            stmt = stmt.where(Phrase.status.in_(status_filter))
        result = await self.db.execute(stmt.execution_options(populate_existing=True))
        phrases = result.scalars().all()

        records = [self._to_record(phrase, locale_filter or None) for phrase in phrases]
        export_locales = locale_filter or self._discover_locales(records)

        if export_format == ExportFormat.JSON:
            data = json.dumps(records, ensure_ascii=False, indent=2).encode("utf-8")
        elif export_format == ExportFormat.CSV:
            data = self._to_csv(records, export_locales)
        else:
            data = self._to_xlsx(records, export_locales)

        stamp = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
        filename = f"phrases-{project_key}-{stamp}.{export_format.value}"

        logger.info(
            "Phrases exported",
            extra={"project_id": project_id, "format": export_format.value, "phrases": len(records)},
        )
        return ExportResult(data=data, filename=filename, mime_type=MIME_TYPES[export_format])

    async def import_phrases(self, project_id: int, file_path: str, overwrite: bool = False) -> ImportResult:
        """
        Import phrases from a JSON, CSV or XLSX file

        Rows are matched on (project, key). Existing phrases are updated only
        with overwrite; bad rows are counted and reported, never raised. The
        file is removed afterwards whatever happens.

        Raises:
            NotFoundError: Unknown project
            ValidationError: Unsupported file extension or unreadable file
        """
        path = Path(file_path)
        try:
            project = await ProjectLookupService(self.db).get_by_id(project_id)
            project_id = project.id

            rows = self._read_rows(path)
            result = ImportResult()
            for row_number, row in enumerate(rows, start=1):
                try:
                    outcome = await self._import_row(project_id, row, overwrite)
                except RowError as e:
                    await self.db.rollback()
                    self._record_row_error(result, row_number, row, str(e))
                    continue
                except Exception as e:
                    await self.db.rollback()
                    logger.error(
                        f"Unexpected error importing row {row_number}: {e}",
                        exc_info=True,
                        extra={"project_id": project_id, "row": row_number},
                    )
                    self._record_row_error(result, row_number, row, f"Could not import row: {e}")
                    continue
                if outcome == "imported":
                    result.imported += 1
                elif outcome == "updated":
                    result.updated += 1
                else:
                    result.skipped += 1

            logger.info(
                "Phrases imported",
                extra={
                    "project_id": project_id,
                    "imported": result.imported,
                    "updated": result.updated,
                    "skipped": result.skipped,
                    "errors": result.errors,
                },
            )
            return result
        finally:
            try:
                os.remove(path)
            except FileNotFoundError:
                pass
            except OSError as e:
                logger.warning(f"Could not remove import file {path}: {e}")

    @staticmethod
    def _record_row_error(result: ImportResult, row_number: int, row: Any, message: str) -> None:
        result.errors += 1
        result.error_details.append({
            "row": row_number,
            "key": row.get("key") if isinstance(row, dict) else None,
            "message": message,
        })

    # Export helpers

    @staticmethod
    def _to_record(phrase: Phrase, locales: Optional[List[str]]) -> Dict[str, Any]:
        translations = {}
        for locale, entry in phrase.translations.items():
            if locales is not None and locale not in locales:
                continue
            translations[locale] = {
                "text": entry.text,
                "status": entry.status.value,
                "isHuman": entry.is_human,
            }
        return {
            "id": phrase.id,
            "key": phrase.key,
            "sourceText": phrase.source_text,
            "context": phrase.context,
            "status": PhraseStatus(phrase.status).value,
            "isArchived": bool(phrase.is_archived),
            "tags": list(phrase.tags or []),
            "translations": translations,
        }

    @staticmethod
    def _discover_locales(records: List[Dict[str, Any]]) -> List[str]:
        seen: List[str] = []
        for record in records:
            for locale in record["translations"]:
                if locale not in seen:
                    seen.append(locale)
        return seen

    @staticmethod
    def _columns(locales: List[str]) -> List[str]:
        return BASE_COLUMNS + [f"{locale}.{field}" for locale in locales for field in LOCALE_FIELDS]

    @staticmethod
    def _flatten(record: Dict[str, Any], locales: List[str]) -> List[Any]:
        row = [
            record["id"],
            record["key"],
            record["sourceText"],
            record["context"] or "",
            record["status"],
            "true" if record["isArchived"] else "false",
            _join_tags(record["tags"]),
        ]
        for locale in locales:
            entry = record["translations"].get(locale)
            if entry is None:
                row.extend(["", "", ""])
            else:
                row.extend([entry["text"], entry["status"], "true" if entry["isHuman"] else "false"])
        return row

    def _to_csv(self, records: List[Dict[str, Any]], locales: List[str]) -> bytes:
        buffer = io.StringIO()
        writer = csv.writer(buffer)
        writer.writerow(self._columns(locales))
        for record in records:
            writer.writerow(self._flatten(record, locales))
        return buffer.getvalue().encode("utf-8")

    def _to_xlsx(self, records: List[Dict[str, Any]], locales: List[str]) -> bytes:
        wb = Workbook()
        ws = wb.active
        ws.title = "Phrases"
        ws.append(self._columns(locales))
        for record in records:
            ws.append(self._flatten(record, locales))
        buffer = io.BytesIO()
        wb.save(buffer)
        return buffer.getvalue()

    # Import helpers

    def _read_rows(self, path: Path) -> List[Dict[str, Any]]:
        suffix = path.suffix.lower()
        if suffix not in (".json", ".csv", ".xlsx"):
            raise ValidationError(
                f"Unsupported import file type: {suffix or path.name}",
                details={"extension": suffix, "supported": [".json", ".csv", ".xlsx"]},
                error_code=ErrorCode.UNSUPPORTED_FORMAT,
            )
        try:
            if suffix == ".json":
                return self._read_json(path)
            if suffix == ".csv":
                with open(path, newline="", encoding="utf-8-sig") as handle:
                    return [self._unflatten(row) for row in csv.DictReader(handle)]
            return self._read_xlsx(path)
        except (ValueError, OSError, KeyError, InvalidFileException, zipfile.BadZipFile) as e:
            raise ValidationError(f"Could not read import file: {e}", details={"file": path.name})

    @staticmethod
    def _read_json(path: Path) -> List[Dict[str, Any]]:
        with open(path, encoding="utf-8") as handle:
            payload = json.load(handle)
        if isinstance(payload, dict):
            payload = payload.get("phrases", [])
        if not isinstance(payload, list):
            raise ValueError("JSON import must be a list of phrases")
        return payload

    def _read_xlsx(self, path: Path) -> List[Dict[str, Any]]:
        wb = load_workbook(path, read_only=True)
        try:
            ws = wb.active
            rows = ws.iter_rows(values_only=True)
            header = next(rows, None)
            if not header:
                return []
            columns = [str(h) if h is not None else "" for h in header]
            records = []
            for values in rows:
                if values is None or all(v is None for v in values):
                    continue
                records.append(self._unflatten(dict(zip(columns, values))))
            return records
        finally:
            wb.close()

    @staticmethod
    def _unflatten(row: Dict[str, Any]) -> Dict[str, Any]:
        """Turn a flat CSV/XLSX row into the wire record shape."""
        record: Dict[str, Any] = {
            "key": _cell(row.get("key")),
            "sourceText": _cell(row.get("sourceText")),
            "context": _cell(row.get("context")),
            "status": _cell(row.get("status")),
            "isArchived": row.get("isArchived"),
            "tags": _split_tags(str(row.get("tags") or "")),
            "translations": {},
        }
        for column, value in row.items():
            if not column or "." not in column:
                continue
            locale, _, field = column.rpartition(".")
            if field not in LOCALE_FIELDS:
                continue
            record["translations"].setdefault(locale, {})[field] = value
        record["translations"] = {
            locale: fields for locale, fields in record["translations"].items()
            if _cell(fields.get("text")) is not None
        }
        return record

    async def _import_row(self, project_id: int, row: Any, overwrite: bool) -> str:
        if not isinstance(row, dict):
            raise RowError("Row is not an object")
        key = _cell(row.get("key"))
        source_text = _cell(row.get("sourceText"))
        if not key or not source_text:
            raise RowError("key and sourceText are required")

        status = None
        if row.get("status"):
            try:
                status = PhraseStatus(str(row["status"]).strip())
            except ValueError:
                raise RowError(f"Invalid status: {row['status']}")

        translations = self._parse_translations(row.get("translations") or {})
        context = _cell(row.get("context"))
        tags = _parse_tags(row.get("tags"))
        source_hash = compute_source_hash(source_text)

        existing = (await self.db.execute(
            select(Phrase).where(Phrase.project_id == project_id, Phrase.key == key).limit(1)
        )).scalar_one_or_none()

        if existing is not None and not overwrite:
            return "skipped"

        clash = (await self.db.execute(
            select(Phrase.id).where(Phrase.project_id == project_id, Phrase.source_hash == source_hash).limit(1)
        )).scalar_one_or_none()
        if clash is not None and (existing is None or clash != existing.id):
            raise RowError("Another phrase in the project has the same source text")

        if existing is not None:
            phrase = existing
            phrase.source_text = source_text
            phrase.source_hash = source_hash
            phrase.context = context
            phrase.content_hash = compute_content_hash(source_text, context)
            if status is not None:
                phrase.status = status
            phrase.is_archived = _parse_bool(row.get("isArchived"), default=bool(phrase.is_archived))
            phrase.tags = tags
            for locale, entry in translations.items():
                phrase.translations[locale] = entry
            flag_modified(phrase, "translations")
            outcome = "updated"
        else:
            phrase = Phrase(
                project_id=project_id,
                key=key,
                source_text=source_text,
                context=context,
                source_hash=source_hash,
                content_hash=compute_content_hash(source_text, context),
                status=status or PhraseStatus.PENDING,
                is_archived=_parse_bool(row.get("isArchived")),
                tags=tags,
                translations=TranslationMap(translations),
                last_seen_at=utcnow(),
            )
            self.db.add(phrase)
            outcome = "imported"

        try:
            await self.db.commit()
        except IntegrityError as e:
            raise RowError(f"Could not store phrase: {e.orig}")
        return outcome

    @staticmethod
    def _parse_translations(raw: Any) -> Dict[str, Any]:
        if not isinstance(raw, dict):
            raise RowError("translations must be an object")
        parsed = {}
        for locale, fields in raw.items():
            try:
                locale = validate_locale_code(str(locale))
            except ValidationError as e:
                raise RowError(e.message)
            if not isinstance(fields, dict):
                fields = {"text": fields}
            text = _cell(fields.get("text"))
            if text is None:
                continue
            try:
                status = TranslationStatus(_cell(fields.get("status")) or TranslationStatus.PENDING.value)
            except ValueError:
                raise RowError(f"Invalid translation status for {locale}: {fields.get('status')}")
            entry = TranslationMap().upsert(
                locale,
                text,
                status=status,
                is_human=_parse_bool(fields.get("isHuman"), default=True),
            )
            parsed[locale] = entry
        return parsed
