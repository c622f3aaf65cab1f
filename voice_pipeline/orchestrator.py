"""
Voice-to-task pipeline orchestrator.

This module owns the current value of each stage store and wires the stages
together: chunked audio intake, transcription, semantic extraction and task
preview generation, followed by the confirm/cancel/update protocol.

Concurrency model:
- One threading.Lock per store. A stage operation reads the store and
  installs the new value while holding that store's lock.
- The speech-to-text and interpretation calls are awaited outside every
  lock, so a slow collaborator never blocks other uploads or confirmations.
- When the confirmation ledger is enabled, confirm_task claims the preview
  id in DynamoDB before confirming, giving exactly-once confirmation across
  instances. The claim is made outside the task lock and released again if
  the local confirm does not go through.
"""

import logging
import threading
import time
import uuid
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple

from voice_pipeline.clients.interpretation_client import InterpretationClient, create_interpreter
from voice_pipeline.clients.stt_client import SpeechToTextClient, create_stt_client
from voice_pipeline.config.settings import Settings, get_settings
from voice_pipeline.data_access.confirmation_ledger import ConfirmationLedger
from voice_pipeline.exceptions import (
    ConfigurationError,
    ExtractionError,
    TranscriptionError,
    VoicePipelineError
)
from voice_pipeline.models.audio_upload import AudioChunk, AudioUpload, AudioValidationResult
from voice_pipeline.models.extraction import SemanticExtraction
from voice_pipeline.models.household import HouseholdContext, WorkloadSnapshot
from voice_pipeline.models.task import ConfirmedTask, TaskOverrides, TaskPreview
from voice_pipeline.models.transcription import AUTO_LANGUAGE, TranscriptionRequest, TranscriptionResult
from voice_pipeline.services import audio_intake
from voice_pipeline.services import semantic_extraction
from voice_pipeline.services import task_generation
from voice_pipeline.services import transcription_stage
from voice_pipeline.utils.audio_probe import probe_duration
from voice_pipeline.utils.error_codes import ErrorCode, get_error_response
from voice_pipeline.utils.structured_logger import configure_structured_logging, log_stage_completion


logger = logging.getLogger(__name__)


class VoiceTaskPipeline:
    """
    Coordinates the four pipeline stages over their stores.

    Validation and state-conflict outcomes come back as None (or an invalid
    AudioValidationResult); only collaborator failures raise, as
    TranscriptionError or ExtractionError, after being logged.

    Examples:
        >>> pipeline = VoiceTaskPipeline(stt_client=client, interpreter=RuleBasedInterpreter())
        >>> pipeline.init_upload('up_1', 'user_1', 'note.wav', 300, 2.0)
        >>> pipeline.upload_chunk('up_1', AudioChunk(index=0, total_chunks=1, data=audio))
        >>> preview = await pipeline.full_pipeline('up_1', household, workloads)
        >>> task = pipeline.confirm_task(preview.id, household.household_id, 'user_1')
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        stt_client: Optional[SpeechToTextClient] = None,
        interpreter: Optional[InterpretationClient] = None,
        ledger: Optional[ConfirmationLedger] = None
    ):
        """
        Initialize the pipeline.

        Args:
            settings: Settings instance (global settings if None)
            stt_client: Speech-to-text client (built from settings on first use if None)
            interpreter: Interpretation client (built from settings if None)
            ledger: Confirmation ledger (built from settings when enabled if None)
        """
        self.settings = settings or get_settings()
        configure_structured_logging(self.settings.log_level, use_json=self.settings.log_json)

        self._stt_client = stt_client
        self.interpreter = interpreter or create_interpreter(self.settings)

        if ledger is None and self.settings.enable_confirmation_ledger:
            ledger = ConfirmationLedger(
                self.settings.confirmations_table_name,
                region=self.settings.aws_region
            )
        self.ledger = ledger

        self._intake_store = audio_intake.create_intake_store()
        self._transcription_store = transcription_stage.create_transcription_store()
        self._extraction_store = semantic_extraction.create_extraction_store()
        self._task_store = task_generation.create_task_store()

        self._intake_lock = threading.Lock()
        self._transcription_lock = threading.Lock()
        self._extraction_lock = threading.Lock()
        self._task_lock = threading.Lock()

        logger.info(
            f"Initialized VoiceTaskPipeline "
            f"(ledger={'on' if self.ledger else 'off'}, interpreter={self.interpreter.model})"
        )

    @property
    def stt_client(self) -> SpeechToTextClient:
        if self._stt_client is None:
            self._stt_client = create_stt_client(self.settings)
        return self._stt_client

    # -------------------------------------------------------------------------
    # Audio intake
    # -------------------------------------------------------------------------

    def init_upload(
        self,
        upload_id: str,
        user_id: str,
        filename: str,
        total_size: int,
        estimated_duration: float,
        mime_type: Optional[str] = None
    ) -> AudioValidationResult:
        """
        Validate upload metadata and, if valid, register the upload.

        Returns:
            The validation result; the upload exists only when it is valid
        """
        validation = audio_intake.validate_audio(
            filename,
            total_size,
            estimated_duration,
            mime_type=mime_type,
            max_size=self.settings.max_audio_size_bytes,
            max_duration=self.settings.max_audio_duration_seconds,
            min_duration=self.settings.min_audio_duration_seconds
        )

        if not validation.valid:
            logger.info(
                f"Upload {upload_id} rejected: {'; '.join(validation.errors)}",
                extra={'correlation_id': upload_id}
            )
            return validation

        with self._intake_lock:
            self._intake_store = audio_intake.initialize_upload(
                self._intake_store, upload_id, user_id, filename, total_size
            )
        return validation

    def upload_chunk(self, upload_id: str, chunk: AudioChunk) -> Optional[AudioUpload]:
        """Add a chunk and return the upload snapshot (None for unknown uploads)."""
        with self._intake_lock:
            self._intake_store = audio_intake.add_chunk(
                self._intake_store,
                upload_id,
                chunk,
                max_chunk_size=self.settings.max_chunk_size_bytes
            )
            return audio_intake.get_upload_status(self._intake_store, upload_id)

    def get_upload(self, upload_id: str) -> Optional[AudioUpload]:
        with self._intake_lock:
            return audio_intake.get_upload_status(self._intake_store, upload_id)

    def get_missing_chunks(self, upload_id: str) -> List[int]:
        with self._intake_lock:
            return audio_intake.get_missing_chunks(self._intake_store, upload_id)

    def cancel_upload(self, upload_id: str, reason: Optional[str] = None) -> Optional[AudioUpload]:
        with self._intake_lock:
            self._intake_store = audio_intake.cancel_upload(self._intake_store, upload_id, reason)
            return audio_intake.get_upload_status(self._intake_store, upload_id)

    def assemble_upload(self, upload_id: str) -> Optional[bytes]:
        """Reassembled audio, or None unless the upload is complete."""
        with self._intake_lock:
            store = self._intake_store
        return audio_intake.assemble_chunks(store, upload_id)

    # -------------------------------------------------------------------------
    # Transcription
    # -------------------------------------------------------------------------

    def _probed_duration_error(self, audio: bytes) -> Optional[Tuple[ErrorCode, str]]:
        duration = probe_duration(audio)
        if duration is None:
            return None
        if duration > self.settings.max_audio_duration_seconds:
            return ErrorCode.AUDIO_TOO_LONG, (
                f"Audio duration {duration:.1f}s exceeds "
                f"{self.settings.max_audio_duration_seconds:.0f}s"
            )
        if duration < self.settings.min_audio_duration_seconds:
            return ErrorCode.AUDIO_TOO_SHORT, (
                f"Audio duration {duration:.2f}s is below "
                f"{self.settings.min_audio_duration_seconds}s"
            )
        return None

    async def transcribe(
        self,
        upload_id: str,
        language: str = AUTO_LANGUAGE,
        provider: Optional[str] = None,
        correlation_id: Optional[str] = None
    ) -> Optional[TranscriptionResult]:
        """
        Transcribe a complete upload.

        The assembled audio's real duration is probed and checked against the
        duration limits before the speech-to-text call.

        Args:
            upload_id: Complete upload to transcribe
            language: ISO 639-1 hint or 'auto'
            provider: Provider hint recorded on the request
            correlation_id: Correlation ID for tracking (upload id if None)

        Returns:
            TranscriptionResult, or None if the upload is not complete or its
            probed duration is out of bounds

        Raises:
            TranscriptionError: If the speech-to-text call fails
        """
        correlation_id = correlation_id or upload_id
        start_time = time.time()

        audio = self.assemble_upload(upload_id)
        if audio is None:
            logger.warning(
                f"Upload {upload_id} is not complete, cannot transcribe",
                extra={'correlation_id': correlation_id, 'error_code': ErrorCode.UPLOAD_INCOMPLETE.value}
            )
            return None

        duration_error = self._probed_duration_error(audio)
        if duration_error:
            error_code, message = duration_error
            logger.warning(
                f"Upload {upload_id} rejected after assembly: {message}",
                extra={'correlation_id': correlation_id, 'error_code': error_code.value}
            )
            return None

        request = TranscriptionRequest(
            audio_id=upload_id,
            language=language,
            provider=provider or self.settings.stt_provider
        )
        with self._transcription_lock:
            self._transcription_store = transcription_stage.start_transcription(
                self._transcription_store, request
            )

        try:
            result = await transcription_stage.run_transcription(self.stt_client, request, audio)
        except TranscriptionError as e:
            with self._transcription_lock:
                self._transcription_store = transcription_stage.fail_transcription(
                    self._transcription_store, upload_id
                )
            logger.error(
                f"Transcription failed for {upload_id}: {e} (retryable={e.retryable})",
                extra={'correlation_id': correlation_id, 'error_code': ErrorCode.TRANSCRIPTION_FAILED.value}
            )
            raise

        with self._transcription_lock:
            self._transcription_store = transcription_stage.complete_transcription(
                self._transcription_store,
                result,
                cache_ttl=timedelta(seconds=self.settings.transcription_cache_ttl_seconds)
            )

        log_stage_completion(
            logger, correlation_id, 'transcription', result.id,
            int((time.time() - start_time) * 1000),
            language=result.language,
            confidence=result.confidence
        )
        return result

    def get_transcription(self, transcription_id: str) -> Optional[TranscriptionResult]:
        with self._transcription_lock:
            return transcription_stage.get_transcription(self._transcription_store, transcription_id)

    def get_transcription_for_upload(self, upload_id: str) -> Optional[TranscriptionResult]:
        with self._transcription_lock:
            return transcription_stage.get_transcription_by_audio_id(
                self._transcription_store, upload_id
            )

    # -------------------------------------------------------------------------
    # Semantic extraction
    # -------------------------------------------------------------------------

    async def extract(
        self,
        transcription_id: str,
        household: HouseholdContext,
        reference_date: Optional[datetime] = None,
        correlation_id: Optional[str] = None
    ) -> Optional[SemanticExtraction]:
        """
        Extract task semantics from a completed transcription.

        Returns:
            SemanticExtraction, or None if the transcription does not exist

        Raises:
            ExtractionError: If the interpretation call fails
        """
        correlation_id = correlation_id or transcription_id
        start_time = time.time()

        transcription = self.get_transcription(transcription_id)
        if transcription is None:
            logger.warning(
                f"Transcription {transcription_id} not found, cannot extract",
                extra={'correlation_id': correlation_id, 'error_code': ErrorCode.TRANSCRIPTION_NOT_FOUND.value}
            )
            return None

        language = transcription.language
        if language == AUTO_LANGUAGE:
            language = self.settings.default_language

        with self._extraction_lock:
            self._extraction_store = semantic_extraction.start_extraction(
                self._extraction_store, transcription_id
            )

        try:
            extraction = await semantic_extraction.extract_with_llm(
                transcription_id,
                transcription.text,
                language,
                household,
                self.interpreter,
                reference_date=reference_date,
                low_confidence_threshold=self.settings.low_confidence_threshold
            )
        except ExtractionError as e:
            with self._extraction_lock:
                self._extraction_store = semantic_extraction.fail_extraction(
                    self._extraction_store, transcription_id, str(e)
                )
            logger.error(
                f"Extraction failed for {transcription_id}: {e} (retryable={e.retryable})",
                extra={'correlation_id': correlation_id, 'error_code': ErrorCode.EXTRACTION_FAILED.value}
            )
            raise

        with self._extraction_lock:
            self._extraction_store = semantic_extraction.complete_extraction(
                self._extraction_store, extraction
            )

        log_stage_completion(
            logger, correlation_id, 'extraction', extraction.id,
            int((time.time() - start_time) * 1000),
            category=extraction.category.primary.value,
            confidence=extraction.overall_confidence
        )
        return extraction

    def get_extraction(self, extraction_id: str) -> Optional[SemanticExtraction]:
        with self._extraction_lock:
            return semantic_extraction.get_extraction(self._extraction_store, extraction_id)

    # -------------------------------------------------------------------------
    # Task generation and preview protocol
    # -------------------------------------------------------------------------

    def generate_preview(
        self,
        extraction_id: str,
        household: HouseholdContext,
        workloads: WorkloadSnapshot,
        correlation_id: Optional[str] = None
    ) -> Optional[TaskPreview]:
        """Generate and store a pending preview (None if the extraction is unknown)."""
        correlation_id = correlation_id or extraction_id
        start_time = time.time()

        extraction = self.get_extraction(extraction_id)
        if extraction is None:
            logger.warning(
                f"Extraction {extraction_id} not found, cannot generate preview",
                extra={'correlation_id': correlation_id, 'error_code': ErrorCode.EXTRACTION_NOT_FOUND.value}
            )
            return None

        preview = task_generation.generate_task_preview(extraction, household, workloads)
        with self._task_lock:
            self._task_store = task_generation.add_preview(self._task_store, preview)

        log_stage_completion(
            logger, correlation_id, 'generation', preview.id,
            int((time.time() - start_time) * 1000),
            priority=preview.priority.value,
            charge_weight=preview.charge_weight.total_weight
        )
        return preview

    def get_preview(self, preview_id: str) -> Optional[TaskPreview]:
        with self._task_lock:
            return task_generation.get_preview(self._task_store, preview_id)

    def get_pending_previews(self) -> List[TaskPreview]:
        with self._task_lock:
            return task_generation.get_pending_previews(self._task_store)

    def update_preview(
        self,
        preview_id: str,
        updates: TaskOverrides,
        household: Optional[HouseholdContext] = None
    ) -> Optional[TaskPreview]:
        """Apply a partial edit and return the preview (None if unknown)."""
        with self._task_lock:
            self._task_store = task_generation.update_preview(
                self._task_store, preview_id, updates, household
            )
            return task_generation.get_preview(self._task_store, preview_id)

    def cancel_preview(self, preview_id: str) -> Optional[TaskPreview]:
        """Cancel a pending preview and return it (None if unknown)."""
        with self._task_lock:
            self._task_store = task_generation.cancel_preview(self._task_store, preview_id)
            return task_generation.get_preview(self._task_store, preview_id)

    def confirm_task(
        self,
        preview_id: str,
        household_id: str,
        user_id: str,
        overrides: Optional[TaskOverrides] = None,
        household: Optional[HouseholdContext] = None
    ) -> Optional[ConfirmedTask]:
        """
        Confirm a pending preview exactly once.

        Returns:
            The confirmed task, or None if the preview is missing, already
            resolved, or was claimed by another instance

        Raises:
            DynamoDBError: If the confirmation ledger is unreachable
        """
        with self._task_lock:
            preview = task_generation.get_preview(self._task_store, preview_id)
            if preview is None or not preview.is_pending:
                return None

        task_id = task_generation.generate_task_id()

        # Claimed outside the lock; the ledger may sleep between retries
        if self.ledger is not None and not self.ledger.claim(preview_id, task_id, household_id):
            return None

        try:
            with self._task_lock:
                self._task_store, task = task_generation.confirm_task(
                    self._task_store,
                    preview_id,
                    household_id,
                    user_id,
                    overrides=overrides,
                    household=household,
                    task_id=task_id
                )
        except Exception:
            logger.error(
                f"Local confirm failed for preview {preview_id}, releasing claim",
                extra={'correlation_id': preview_id, 'error_code': ErrorCode.INTERNAL_SERVER_ERROR.value},
                exc_info=True
            )
            self._release_claim(preview_id, task_id)
            raise

        if task is None:
            self._release_claim(preview_id, task_id)
        return task

    def _release_claim(self, preview_id: str, task_id: str) -> None:
        if self.ledger is not None:
            self.ledger.release(preview_id, task_id)

    def get_confirmed_task(self, task_id: str) -> Optional[ConfirmedTask]:
        with self._task_lock:
            return task_generation.get_confirmed_task(self._task_store, task_id)

    def get_confirmed_tasks(self, **filters: Any) -> List[ConfirmedTask]:
        """Confirmed tasks filtered by household_id, child_id, assignee_id, category or status."""
        with self._task_lock:
            return task_generation.get_confirmed_tasks(self._task_store, **filters)

    # -------------------------------------------------------------------------
    # End to end
    # -------------------------------------------------------------------------

    async def full_pipeline(
        self,
        upload_id: str,
        household: HouseholdContext,
        workloads: WorkloadSnapshot,
        language: str = AUTO_LANGUAGE,
        reference_date: Optional[datetime] = None
    ) -> Optional[TaskPreview]:
        """
        Transcribe, extract and generate a preview for a complete upload.

        Args:
            upload_id: Complete upload
            household: Household snapshot
            workloads: Per-member load snapshot
            language: Language hint for transcription
            reference_date: Date relative phrases resolve against

        Returns:
            Pending TaskPreview, or None if a stage had nothing to work on

        Raises:
            TranscriptionError: If transcription fails
            ExtractionError: If extraction fails
        """
        correlation_id = upload_id or str(uuid.uuid4())
        start_time = time.time()

        transcription = await self.transcribe(upload_id, language, correlation_id=correlation_id)
        if transcription is None:
            return None

        extraction = await self.extract(
            transcription.id,
            household,
            reference_date=reference_date,
            correlation_id=correlation_id
        )
        if extraction is None:
            return None

        preview = self.generate_preview(
            extraction.id, household, workloads, correlation_id=correlation_id
        )

        logger.info(
            f"Pipeline completed for {upload_id} in "
            f"{int((time.time() - start_time) * 1000)}ms",
            extra={'correlation_id': correlation_id}
        )
        return preview

    # -------------------------------------------------------------------------
    # Status and maintenance
    # -------------------------------------------------------------------------

    def get_status(self, upload_id: str) -> Dict[str, Any]:
        """Where an upload currently is in the pipeline."""
        upload = self.get_upload(upload_id)
        transcription = self.get_transcription_for_upload(upload_id)

        extraction = None
        if transcription is not None:
            with self._extraction_lock:
                extraction = semantic_extraction.get_extraction_by_transcription(
                    self._extraction_store, transcription.id
                )

        previews: List[TaskPreview] = []
        if extraction is not None:
            with self._task_lock:
                previews = [
                    p for p in self._task_store.previews.values()
                    if p.extraction_id == extraction.id
                ]

        return {
            'uploadId': upload_id,
            'upload': upload.to_dict() if upload else None,
            'transcriptionId': transcription.id if transcription else None,
            'extractionId': extraction.id if extraction else None,
            'previews': [{'id': p.id, 'status': p.status.value} for p in previews],
        }

    def get_stats(self) -> Dict[str, Dict[str, float]]:
        with self._intake_lock:
            intake = audio_intake.get_intake_stats(self._intake_store)
        with self._transcription_lock:
            transcription = transcription_stage.get_transcription_stats(self._transcription_store)
        with self._extraction_lock:
            extraction = semantic_extraction.get_extraction_stats(self._extraction_store)
        return {'intake': intake, 'transcription': transcription, 'extraction': extraction}

    @staticmethod
    def error_response(error: VoicePipelineError) -> Dict[str, Any]:
        """
        Build the caller-facing payload for a raised pipeline error.

        Collaborator failures carry their retry hint so the caller can offer
        "try again"; anything else maps to an internal error.

        Args:
            error: Error raised by a pipeline operation

        Returns:
            Dict with code, message, status, retryable and optional details
        """
        if isinstance(error, TranscriptionError):
            code = ErrorCode.TRANSCRIPTION_FAILED
            details = {'audioId': error.audio_id, 'provider': error.provider}
        elif isinstance(error, ExtractionError):
            code = ErrorCode.EXTRACTION_FAILED
            details = {'transcriptionId': error.transcription_id}
        elif isinstance(error, ConfigurationError):
            return get_error_response(ErrorCode.INTERNAL_CONFIGURATION_ERROR)
        else:
            return get_error_response(ErrorCode.INTERNAL_SERVER_ERROR)

        details = {key: value for key, value in details.items() if value is not None}
        return get_error_response(code, details, retryable=error.retryable)

    def cleanup(self, max_upload_age: timedelta = timedelta(hours=1)) -> None:
        """
        Drop stale uploads, transcribed audio and expired cache entries.

        Complete uploads are released once a transcription exists for them;
        untranscribed ones are kept for retries up to the complete-upload TTL.
        """
        with self._transcription_lock:
            transcribed_ids = list(self._transcription_store.by_audio_id)
        with self._intake_lock:
            self._intake_store = audio_intake.cleanup_old_uploads(
                self._intake_store,
                max_age=max_upload_age,
                transcribed_ids=transcribed_ids
            )
        with self._transcription_lock:
            self._transcription_store = transcription_stage.clean_expired_cache(
                self._transcription_store
            )
