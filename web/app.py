"""Flask JSON API over the RimWorld definition parser."""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path

from flask import Flask, current_app, jsonify, request, send_file

from rimworld_parser.cli import dump_dataset
from rimworld_parser.domain.constants import COMPRESSED_DATASET_FILENAME, DIAGNOSTICS_FILENAME
from rimworld_parser.domain.errors import DefinitionPipelineError
from rimworld_parser.domain.models import DumpOptions
from rimworld_parser.output.dataset_writer import load_dataset
from rimworld_parser.package_reader import PackageReadError

logger = logging.getLogger(__name__)

app = Flask(__name__)
app.config['UPLOAD_FOLDER'] = Path(__file__).parent / 'uploads'

JOB_FILENAME = 'job.json'


def _upload_folder() -> Path:
    folder = Path(current_app.config['UPLOAD_FOLDER'])
    folder.mkdir(parents=True, exist_ok=True)
    return folder


def _job_folder(job_id: int) -> Path:
    return _upload_folder() / str(job_id)


def get_next_job_id() -> int:
    """Get the next sequential job ID."""
    existing = [int(d.name) for d in _upload_folder().iterdir() if d.is_dir() and d.name.isdigit()]
    return max(existing, default=0) + 1


def _load_job_dataset(job_id: int):
    dataset_path = _job_folder(job_id) / 'output' / COMPRESSED_DATASET_FILENAME
    if not dataset_path.exists():
        return None
    return load_dataset(str(dataset_path))


def _iter_definitions(dataset: dict):
    for category in dataset['categories']:
        yield from category['definitions']


@app.route('/api/upload', methods=['POST'])
def upload_and_process():
    """Upload a ZIP of def files and process it."""
    if 'file' not in request.files:
        return jsonify({'error': 'No file provided'}), 400

    file = request.files['file']
    if not file.filename or not file.filename.endswith('.zip'):
        return jsonify({'error': 'Please upload a ZIP file'}), 400

    job_id = get_next_job_id()
    job_folder = _job_folder(job_id)
    job_folder.mkdir(exist_ok=True)

    zip_path = job_folder / Path(file.filename).name
    file.save(zip_path)
    output_dir = job_folder / 'output'

    job = {
        'job_id': job_id,
        'filename': zip_path.name,
        'parsed_at': datetime.now(timezone.utc).isoformat(),
    }
    try:
        result = dump_dataset(str(zip_path), str(output_dir), DumpOptions(compress=True))
    except DefinitionPipelineError as e:
        logger.warning("Job %d failed: %s", job_id, e)
        job.update(status='failed', error=str(e))
        _write_job(job_folder, job)
        return jsonify({**job, 'diagnostics': [d.to_dict() for d in e.diagnostics]}), 422
    except PackageReadError as e:
        job.update(status='failed', error=str(e))
        _write_job(job_folder, job)
        return jsonify(job), 400

    job.update(
        status='success',
        definitions=result.definitions,
        excluded=result.excluded,
        edges=result.edges,
        diagnostics_count=result.diagnostics_count,
    )
    _write_job(job_folder, job)
    return jsonify(job)


def _write_job(job_folder: Path, job: dict) -> None:
    with open(job_folder / JOB_FILENAME, 'w', encoding='utf-8') as f:
        json.dump(job, f, indent=2)


@app.route('/api/jobs')
def list_jobs():
    """List all processed jobs, newest first."""
    jobs = []
    for d in sorted(_upload_folder().iterdir(), key=lambda x: int(x.name) if x.name.isdigit() else 0, reverse=True):
        job_path = d / JOB_FILENAME
        if d.is_dir() and d.name.isdigit() and job_path.exists():
            with open(job_path, encoding='utf-8') as f:
                jobs.append(json.load(f))
    return jsonify(jobs)


@app.route('/api/jobs/<int:job_id>/definitions')
def list_definitions(job_id: int):
    """List definition summaries, optionally filtered by ?type=."""
    dataset = _load_job_dataset(job_id)
    if dataset is None:
        return jsonify({'error': 'Job not found'}), 404

    def_type = request.args.get('type')
    definitions = [
        {
            'def_name': d['def_name'],
            'def_type': d['def_type'],
            'label': d['label'],
            'is_abstract': d['is_abstract'],
            'extension': d['extension'],
        }
        for d in _iter_definitions(dataset)
        if not def_type or d['def_type'] == def_type
    ]
    return jsonify(definitions)


@app.route('/api/jobs/<int:job_id>/definitions/<name>')
def get_definition(job_id: int, name: str):
    """Get one definition with its resolved fields and edges."""
    dataset = _load_job_dataset(job_id)
    if dataset is None:
        return jsonify({'error': 'Job not found'}), 404

    for definition in _iter_definitions(dataset):
        if definition['def_name'] == name:
            return jsonify(definition)
    return jsonify({'error': f'Definition not found: {name}'}), 404


@app.route('/api/jobs/<int:job_id>/diagnostics')
def get_diagnostics(job_id: int):
    """Get the diagnostics of a job, including failed ones."""
    diagnostics_path = _job_folder(job_id) / 'output' / DIAGNOSTICS_FILENAME
    if not diagnostics_path.exists():
        return jsonify({'error': 'Job not found'}), 404
    with open(diagnostics_path, encoding='utf-8') as f:
        return jsonify(json.load(f))


@app.route('/api/jobs/<int:job_id>/download')
def download_dataset(job_id: int):
    """Download the compressed dataset."""
    dataset_path = _job_folder(job_id) / 'output' / COMPRESSED_DATASET_FILENAME
    if not dataset_path.exists():
        return jsonify({'error': 'Job not found'}), 404
    return send_file(dataset_path, as_attachment=True, download_name=f'rimworld_dataset_{job_id}.json.zstd')


if __name__ == '__main__':
    app.run(debug=True, port=5002)
