#!/usr/bin/env python3
"""
Camera Soak Script
==================

Standalone script that runs the full pipeline against a camera or video.

This script:
    1. Opens a webcam index or video file
    2. Runs the pipeline for a configurable duration
    3. Logs ingestion/detection stats every few seconds
    4. Reports final summary

Usage:
    python scripts/run_camera.py --duration 60
    python scripts/run_camera.py --device clip.mp4 --backend dlib
"""

import argparse
import logging
import os
import sys
import time

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from maskscan.config import settings
from maskscan.pipeline import CameraLoop, MaskScanPipeline
from maskscan.presenter import PresenterGroup, StatusPresenter, WindowPresenter
from maskscan.stream.camera import OpenCVCameraSource


logger = logging.getLogger("run_camera")


def run(duration: int, report_interval: int, show_window: bool) -> dict:
    """
    Run the pipeline against the configured camera.

    Args:
        duration: Run time in seconds
        report_interval: Seconds between progress reports
        show_window: Also present frames in an OpenCV window

    Returns:
        Final metrics dict
    """
    logger.info("=" * 60)
    logger.info(f"Device: {settings.camera.device}")
    logger.info(f"Detector backend: {settings.detector.backend}")
    logger.info(f"Duration: {duration} seconds")
    logger.info("=" * 60)

    status = StatusPresenter()
    presenters = [status]
    if show_window:
        presenters.append(WindowPresenter(settings.app.name))

    pipeline = MaskScanPipeline.from_settings(settings, PresenterGroup(presenters))
    camera = OpenCVCameraSource(settings.camera.device)
    loop = CameraLoop(camera, pipeline)

    start_time = time.time()
    last_report_time = start_time
    last_processed = 0

    loop.start()
    try:
        while time.time() - start_time < duration:
            time.sleep(0.5)

            since_report = time.time() - last_report_time
            if since_report < report_interval:
                continue

            metrics = pipeline.metrics()
            processed = metrics["worker"]["frames_processed"]
            fps = (processed - last_processed) / since_report

            logger.info("-" * 40)
            logger.info(f"  Frames received: {metrics['ingestor']['frames_received']}")
            logger.info(f"  Frames dropped: {metrics['ingestor']['frames_dropped']}")
            logger.info(f"  Processed FPS: {fps:.1f}")
            logger.info(f"  Status: {status.latest_status}")

            result = pipeline.latest_result
            if result is not None:
                for face in result.faces:
                    logger.info(f"  Face {face.bbox}: mask score {face.mask_score}")

            last_report_time = time.time()
            last_processed = processed

    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    finally:
        loop.stop()
        pipeline.close()
        camera.close()

    total_time = time.time() - start_time
    metrics = pipeline.metrics()

    logger.info("=" * 60)
    logger.info("FINAL SUMMARY")
    logger.info("=" * 60)
    logger.info(f"Total runtime: {total_time:.1f} seconds")
    logger.info(f"Frames received: {metrics['ingestor']['frames_received']}")
    logger.info(f"Frames dropped: {metrics['ingestor']['frames_dropped']}")
    logger.info(f"Frames processed: {metrics['worker']['frames_processed']}")
    logger.info(f"Detection failures: {metrics['worker']['detection_failures']}")
    logger.info(f"Slot allocations: {metrics['slot']['allocations']}")
    logger.info("=" * 60)

    return {
        "duration": total_time,
        "frames_received": metrics["ingestor"]["frames_received"],
        "frames_processed": metrics["worker"]["frames_processed"],
        "frames_dropped": metrics["ingestor"]["frames_dropped"],
    }


def main():
    parser = argparse.ArgumentParser(
        description="Run the MaskScan pipeline against a camera or video file"
    )
    parser.add_argument(
        "--device",
        type=str,
        default=None,
        help="Webcam index or video path (default: from config)",
    )
    parser.add_argument(
        "--backend",
        type=str,
        default=None,
        help="Detector backend: mock or dlib (default: from config)",
    )
    parser.add_argument(
        "--duration",
        type=int,
        default=60,
        help="Run duration in seconds (default: 60)",
    )
    parser.add_argument(
        "--report-interval",
        type=int,
        default=5,
        help="Seconds between progress reports (default: 5)",
    )
    parser.add_argument(
        "--window",
        action="store_true",
        help="Show frames in an OpenCV window",
    )

    args = parser.parse_args()

    if args.device is not None:
        settings.camera.device = int(args.device) if args.device.isdigit() else args.device
    if args.backend is not None:
        settings.detector.backend = args.backend

    results = run(args.duration, args.report_interval, args.window)
    sys.exit(0 if results["frames_processed"] > 0 else 1)


if __name__ == "__main__":
    main()
