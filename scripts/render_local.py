from __future__ import annotations

import argparse
import asyncio
import mimetypes
import shutil
from pathlib import Path

from dubline.config import Settings
from dubline.formatters.srt import format_srt
from dubline.models.artifact import ArtifactRole
from dubline.models.request import RenderRequest
from dubline.pipeline.orchestrator import PipelineOrchestrator
from dubline.storage import get_artifact_store, safe_extension
from dubline.utils.logging_setup import setup_logging


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Render a narrated, subtitled video from local files.")
    parser.add_argument("--video", required=True, help="Path to local video file")
    text = parser.add_mutually_exclusive_group(required=True)
    text.add_argument("--text", default=None, help="Narration script")
    text.add_argument("--text-file", default=None, help="Read the narration script from a UTF-8 file")
    parser.add_argument("--output", default=None, help="Output MP4 path (defaults to ./final_<id>.mp4)")
    parser.add_argument("--srt", default=None, help="Also write the subtitle cues to this path")
    parser.add_argument("--provider", default=None, help="TTS provider: google_translate or edge")
    parser.add_argument("--language", default=None, help="Narration language code, e.g. en/de")
    parser.add_argument("--voice", default=None, help="Voice name (edge only)")
    parser.add_argument("--chunk-size", type=int, default=None, help="Words per subtitle cue")
    return parser.parse_args()


async def _run() -> int:
    args = _parse_args()
    video_path = Path(args.video)
    if not video_path.is_file():
        raise SystemExit(f"Video not found: {video_path}")
    text = args.text if args.text is not None else Path(args.text_file).read_text(encoding="utf-8")

    settings = Settings()
    if args.provider is not None:
        settings.narration.provider = str(args.provider)
    if args.language is not None:
        settings.narration.language = str(args.language)
    if args.voice is not None:
        settings.narration.voice = str(args.voice)
    if args.chunk_size is not None:
        settings.cues.chunk_size = max(1, int(args.chunk_size))
    setup_logging(settings)

    orchestrator = PipelineOrchestrator(settings, get_artifact_store(settings))
    artifacts = orchestrator.open_request()
    try:
        # Work on a copy so the pipeline may release its input.
        raw_path = artifacts.create(ArtifactRole.RAW_UPLOAD, safe_extension(video_path.name, ".mp4"))
        await asyncio.to_thread(shutil.copyfile, video_path, raw_path)
        mime_type, _ = mimetypes.guess_type(video_path.name)

        result = await orchestrator.run(
            artifacts,
            RenderRequest(
                video_path=raw_path,
                text=text,
                original_filename=video_path.name,
                mime_type=mime_type,
            ),
        )
        try:
            output = Path(args.output) if args.output else Path.cwd() / result.download_name
            output.parent.mkdir(parents=True, exist_ok=True)
            await asyncio.to_thread(shutil.copyfile, result.output_path, output)
            if args.srt:
                Path(args.srt).write_text(format_srt(result.cues), encoding="utf-8")
        finally:
            await result.aclose()
    finally:
        await artifacts.release_all()
        await orchestrator.close()

    print(
        f"request_id={result.request_id} output={output} bytes={result.size_bytes} "
        f"narration_s={result.narration_duration:.3f} cues={len(result.cues)}"
    )
    return 0


def main() -> None:
    raise SystemExit(asyncio.run(_run()))


if __name__ == "__main__":
    main()
