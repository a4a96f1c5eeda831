import logging

from flask import Blueprint, Response, request
from werkzeug.exceptions import BadRequest

from filegate.common.auth import get_current_identity, token_required
from filegate.common.context import get_context
from filegate.common.response import fail, success
from filegate.services.file_service import FileService
from filegate.services.storage.base_storage import StorageError

logger = logging.getLogger(__name__)

file_bp = Blueprint('file', __name__)


def _body_params():
    # DELETE / info 接受 JSON，也兼容表单
    if not request.is_json:
        return request.form
    params = request.get_json(silent=True)
    if not isinstance(params, dict):
        raise BadRequest('JSON body must be an object with "bucketName" and "path".')
    return params


def _is_true(value):
    return str(value).lower() == 'true'


@file_bp.route('/upload', methods=['POST'])
@token_required()
def upload_file():
    identity = get_current_identity()
    # 非 multipart 或缺 boundary 时 werkzeug 会静默解析出空表单
    if request.mimetype != 'multipart/form-data' or not request.mimetype_params.get('boundary'):
        raise BadRequest('Upload must be a multipart/form-data body with a boundary (field: file).')
    file_obj = request.files.get("file")
    data = file_obj.read() if file_obj else None

    result, err = FileService.upload(
        get_context(),
        identity,
        bucket_name=request.form.get("bucketName"),
        data=data,
        original_name=file_obj.filename if file_obj else None,
        mime_type=file_obj.mimetype if file_obj else None,
        path=request.form.get("path", ""),
        replace=_is_true(request.form.get("replace")),
    )
    if err:
        return fail(err)

    created = result.pop("created")
    if not result["metadataSynced"]:
        msg = "File stored, but its metadata could not be recorded."
    elif created:
        msg = "Upload completed successfully!"
    else:
        msg = "File replaced successfully!"
    return success(result, msg=msg, status=201 if created else 200)


@file_bp.route('', methods=['DELETE'])
@token_required()
def delete_file():
    params = _body_params()
    _, err = FileService.delete(get_context(), get_current_identity(), params.get("bucketName"), params.get("path"))
    if err:
        return fail(err)
    return '', 204


@file_bp.route('/info', methods=['POST'])
@token_required()
def file_info():
    params = _body_params()
    info, err = FileService.info(get_context(), get_current_identity(), params.get("bucketName"), params.get("path"))
    if err:
        return fail(err)
    return success(info)


def _relay(stream, bucket, key):
    """逐块转发对象流；客户端断开时生成器被关闭，底层流随之关闭"""
    try:
        for chunk in stream:
            yield chunk
    except StorageError:
        # 响应头已发出，只能记录并中断传输
        logger.exception("Storage stream failed mid-download for %s/%s", bucket, key)
        raise
    finally:
        stream.close()


@file_bp.route('/download', methods=['GET'])
@token_required()
def download_file():
    result, err = FileService.download(
        get_context(),
        get_current_identity(),
        request.args.get("bucketName"),
        request.args.get("path"),
    )
    if err:
        return fail(err)

    headers = {
        "Content-Disposition": f'attachment; filename="{result["downloadName"]}"',
        "Content-Type": result["mimeType"],
        "Content-Length": str(result["size"]),
    }
    return Response(_relay(result["stream"], result["bucket"], result["key"]), status=200, headers=headers)
