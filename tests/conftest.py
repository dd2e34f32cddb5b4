"""Shared fixtures: a small XAPI-style OpenAPI document and API settings."""
import pytest

from config import AppConfig, XapiConfig


@pytest.fixture
def xapi_config():
    """API settings without retries or real credentials"""
    return XapiConfig(
        base_url="https://pbx.example.com:5001",
        client_id="client",
        client_secret="secret",
        timeout=5,
        max_attempts=1,
        retry_backoff=0,
    )


@pytest.fixture
def app_settings(tmp_path, xapi_config):
    return AppConfig(
        definitions_file=str(tmp_path / "definitions.json"),
        output_dir=str(tmp_path / "output"),
        definitions_max_age=3600,
        xapi=xapi_config,
    )


def _collection(item_schema: str) -> dict:
    return {
        "allOf": [
            {"$ref": "#/components/schemas/BaseCollectionPaginationCountResponse"},
            {
                "type": "object",
                "properties": {
                    "value": {
                        "type": "array",
                        "items": {"$ref": f"#/components/schemas/{item_schema}"},
                    }
                },
            },
        ]
    }


def _json_response(schema: dict) -> dict:
    return {
        "description": "Success",
        "content": {"application/json": {"schema": schema}},
    }


ODATA_PARAMS = [
    {"name": "$top", "in": "query", "schema": {"type": "integer"}},
    {"name": "$skip", "in": "query", "schema": {"type": "integer"}},
    {"name": "$filter", "in": "query", "schema": {"type": "string"}},
    {"name": "$count", "in": "query", "schema": {"type": "boolean"}},
    {"name": "$orderby", "in": "query", "schema": {"type": "string"}},
]


@pytest.fixture
def sample_openapi_spec():
    """Sample OpenAPI 3.0 specification shaped like the 3CX XAPI"""
    return {
        "openapi": "3.0.1",
        "info": {"title": "XAPI", "version": "v1"},
        "paths": {
            "/ActiveCalls": {
                "get": {
                    "tags": ["ActiveCalls"],
                    "operationId": "ActiveCalls.ListActiveCall",
                    "responses": {
                        "200": {"$ref": "#/components/responses/ActiveCallCollectionResponse"}
                    },
                }
            },
            "/CallHistoryView": {
                "get": {
                    "tags": ["CallHistoryView"],
                    "operationId": "CallHistoryView.ListCallHistoryView",
                    "parameters": [
                        {"$ref": "#/components/parameters/top"},
                        {"$ref": "#/components/parameters/filter"},
                    ],
                    "responses": {
                        "200": _json_response(
                            {"$ref": "#/components/schemas/CallHistoryViewCollectionResponse"}
                        )
                    },
                }
            },
            "/ReportCallLogData/Pbx.GetCallLogData(periodFrom={periodFrom},periodTo={periodTo},sourceType={sourceType},queueDns={queueDns})": {
                "get": {
                    "tags": ["ReportCallLogData"],
                    "operationId": "ReportCallLogData.GetCallLogData",
                    "parameters": ODATA_PARAMS,
                    "responses": {"200": _json_response(_collection("Pbx.CallLogData"))},
                }
            },
            "/ReportReseller/Pbx.GetResellerStats(resellerId={resellerId},days={grantPeriodDays})": {
                "get": {
                    "tags": ["ReportReseller"],
                    "operationId": "ReportReseller.GetResellerStats",
                    "responses": {"200": _json_response(_collection("Pbx.ResellerStat"))},
                }
            },
            "/ReportAudit/Pbx.GetAudit(reseller={resellerId},category={category})": {
                "get": {
                    "tags": ["ReportAudit"],
                    "operationId": "ReportAudit.GetAudit",
                    "responses": {"200": _json_response(_collection("Pbx.ResellerStat"))},
                }
            },
            "/Users": {
                "get": {
                    "tags": ["Users"],
                    "operationId": "Users.ListUser",
                    "parameters": ODATA_PARAMS[:3],
                    "responses": {"200": _json_response(_collection("Pbx.User"))},
                },
                "post": {
                    "tags": ["Users"],
                    "operationId": "Users.AddUser",
                    "responses": {"201": {"description": "Created"}},
                },
            },
            "/Users({Id})": {
                "get": {
                    "tags": ["Users"],
                    "operationId": "Users.GetUser",
                    "responses": {"200": _json_response({"$ref": "#/components/schemas/Pbx.User"})},
                }
            },
            "/Users/Pbx.DownloadGreeting(userId={userId},fileName={fileName})": {
                "get": {
                    "tags": ["Users"],
                    "operationId": "Users.DownloadGreeting",
                    "responses": {"200": {"description": "File"}},
                }
            },
            "/Users/Pbx.GetPhoneRegistrar(mac={mac})": {
                "get": {
                    "tags": ["Users"],
                    "operationId": "Users.GetPhoneRegistrar",
                    "responses": {"200": _json_response({"$ref": "#/components/schemas/Pbx.User"})},
                }
            },
            "/MyUser": {
                "get": {
                    "tags": ["MyUser"],
                    "operationId": "MyUser.GetMyUser",
                    "responses": {"200": _json_response({"$ref": "#/components/schemas/Pbx.User"})},
                }
            },
            "/SystemStatus": {
                "get": {
                    "tags": ["SystemStatus"],
                    "operationId": "SystemStatus.GetSystemStatus",
                    "responses": {
                        "200": _json_response({"$ref": "#/components/schemas/Pbx.SystemStatus"})
                    },
                }
            },
            "/Defs": {
                "get": {
                    "tags": ["Defs"],
                    "operationId": "Defs.GetDefs",
                    "responses": {"200": {"description": "Success"}},
                }
            },
            "/Untagged": {
                "get": {
                    "operationId": "Untagged.Get",
                    "responses": {"200": _json_response({"$ref": "#/components/schemas/Pbx.User"})},
                }
            },
        },
        "components": {
            "parameters": {
                "top": {"name": "$top", "in": "query", "schema": {"type": "integer"}},
                "filter": {"name": "$filter", "in": "query", "schema": {"type": "string"}},
            },
            "responses": {
                "ActiveCallCollectionResponse": _json_response(
                    {"$ref": "#/components/schemas/ActiveCallCollectionResponse"}
                ),
            },
            "schemas": {
                "BaseCollectionPaginationCountResponse": {
                    "type": "object",
                    "properties": {"@odata.count": {"type": "integer"}},
                },
                "ActiveCallCollectionResponse": _collection("Pbx.ActiveCall"),
                "CallHistoryViewCollectionResponse": _collection("Pbx.CallHistoryView"),
                "Pbx.ActiveCall": {
                    "type": "object",
                    "properties": {
                        "Id": {"type": "integer", "format": "int32"},
                        "Caller": {"type": "string"},
                        "Callee": {"type": "string"},
                        "EstablishedAt": {"type": "string", "format": "date-time"},
                    },
                },
                "Pbx.CallHistoryView": {
                    "type": "object",
                    "properties": {
                        "SegmentId": {"type": "integer"},
                        "SegmentStartTime": {"type": "string", "format": "date-time"},
                        "SrcDn": {"type": "string"},
                        "CallTime": {"type": "string", "format": "date-time"},
                    },
                },
                "Pbx.CallLogData": {
                    "type": "object",
                    "properties": {
                        "StartTime": {"type": "string", "format": "date-time"},
                        "TalkingDuration": {"type": "string", "format": "duration"},
                        "Answered": {"type": "boolean"},
                        "Cost": {"type": "number", "format": "double"},
                        "Participants": {"type": "array", "items": {"type": "string"}},
                    },
                },
                "Pbx.ResellerStat": {
                    "type": "object",
                    "properties": {
                        "ResellerName": {"type": "string"},
                        "Licenses": {"type": "integer"},
                    },
                },
                "Pbx.User": {
                    "type": "object",
                    "properties": {
                        "Id": {"type": "integer"},
                        "FirstName": {"type": "string"},
                        "Number": {"type": "string"},
                    },
                },
                "Pbx.SystemStatus": {
                    "type": "object",
                    "properties": {
                        "FQDN": {"type": "string"},
                        "Version": {"type": "string"},
                        "Activated": {"type": "boolean"},
                        "LastBackupDateTime": {"type": "string", "format": "date-time"},
                        "MaxSimCalls": {"type": "integer"},
                    },
                },
            },
        },
    }
