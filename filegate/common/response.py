from flask import jsonify


def success(data=None, msg="ok", status=200):
    return jsonify({"message": msg, "data": data or {}}), status


def fail(error):
    """error 为 ServiceError"""
    body = {"message": error.public_message()}
    code = error.public_code()
    if code:
        body["code"] = code
    return jsonify(body), error.status
