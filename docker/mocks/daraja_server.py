"""
Daraja Mock Server: simulates Safaricom's M-Pesa Express (STK push) API.
Run: python daraja_server.py
Listens on port 8001. Point the app at it with MPESA_BASE_URL=http://localhost:8001.

A few seconds after each accepted STK push the server POSTs a result to the
request's CallBackURL, the way Safaricom does. Phone numbers ending in 0
simulate a customer with insufficient funds.
"""

import json, threading, time, uuid
from http.server import BaseHTTPRequestHandler, HTTPServer
from urllib.request import Request, urlopen

CALLBACK_DELAY_S = 3


def send_callback(url, merchant_request_id, checkout_request_id, amount, phone):
    time.sleep(CALLBACK_DELAY_S)
    if str(phone).endswith("0"):
        callback = {
            "MerchantRequestID": merchant_request_id,
            "CheckoutRequestID": checkout_request_id,
            "ResultCode": 1,
            "ResultDesc": "The balance is insufficient for the transaction.",
        }
    else:
        callback = {
            "MerchantRequestID": merchant_request_id,
            "CheckoutRequestID": checkout_request_id,
            "ResultCode": 0,
            "ResultDesc": "The service request is processed successfully.",
            "CallbackMetadata": {"Item": [
                {"Name": "Amount",             "Value": amount},
                {"Name": "MpesaReceiptNumber", "Value": uuid.uuid4().hex[:10].upper()},
                {"Name": "TransactionDate",    "Value": int(time.strftime("%Y%m%d%H%M%S"))},
                {"Name": "PhoneNumber",        "Value": int(phone)},
            ]},
        }
    body = json.dumps({"Body": {"stkCallback": callback}}).encode()
    req = Request(url, data=body, headers={"Content-Type": "application/json"})
    try:
        urlopen(req, timeout=10).read()
    except OSError as exc:
        print(f"Callback to {url} failed: {exc}")


class DarajaHandler(BaseHTTPRequestHandler):
    def do_GET(self):
        if self.path.startswith("/oauth/v1/generate"):
            self._respond(200, {"access_token": uuid.uuid4().hex, "expires_in": "3599"})
        else:
            self._respond(404, {"errorMessage": "Not found"})

    def do_POST(self):
        length = int(self.headers.get("Content-Length", 0))
        body   = json.loads(self.rfile.read(length) or b"{}")

        if self.path == "/mpesa/stkpush/v1/processrequest":
            if not body.get("CallBackURL") or int(body.get("Amount", 0)) < 1:
                self._respond(400, {"errorCode": "400.002.02", "errorMessage": "Bad Request - Invalid Amount"})
                return
            merchant_request_id = f"{uuid.uuid4().int % 100000}-{uuid.uuid4().int % 10**8}-1"
            checkout_request_id = f"ws_CO_{time.strftime('%d%m%Y%H%M%S')}{uuid.uuid4().hex[:6]}"
            threading.Thread(
                target=send_callback,
                args=(body["CallBackURL"], merchant_request_id, checkout_request_id,
                      body["Amount"], body.get("PhoneNumber", "")),
                daemon=True,
            ).start()
            self._respond(200, {
                "MerchantRequestID":   merchant_request_id,
                "CheckoutRequestID":   checkout_request_id,
                "ResponseCode":        "0",
                "ResponseDescription": "Success. Request accepted for processing",
                "CustomerMessage":     "Success. Request accepted for processing",
            })
        elif self.path == "/mpesa/stkpushquery/v1/query":
            self._respond(200, {
                "ResponseCode":      "0",
                "CheckoutRequestID": body.get("CheckoutRequestID", ""),
                "ResultCode":        "0",
                "ResultDesc":        "The service request is processed successfully.",
            })
        else:
            self._respond(404, {"errorMessage": "Not found"})

    def _respond(self, code, data):
        self.send_response(code)
        self.send_header("Content-Type", "application/json")
        self.end_headers()
        self.wfile.write(json.dumps(data).encode())

    def log_message(self, *_):
        pass


if __name__ == "__main__":
    server = HTTPServer(("0.0.0.0", 8001), DarajaHandler)
    print("Daraja Mock running on :8001")
    server.serve_forever()
