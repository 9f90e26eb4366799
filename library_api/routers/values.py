"""Scaffold resource kept from the project template. It has no domain meaning."""

from typing import List, Optional

from fastapi import APIRouter, Body, Response, status

router = APIRouter()


@router.get("", response_model=List[str])
def get_values():
    return ["value1", "value2"]


@router.get("/{value_id}", response_model=str)
def get_value(value_id: int):
    return "value"


@router.post("")
def post_value(value: Optional[str] = Body(default=None)):
    return Response(status_code=status.HTTP_200_OK)


@router.put("/{value_id}")
def put_value(value_id: int, value: Optional[str] = Body(default=None)):
    return Response(status_code=status.HTTP_200_OK)


@router.delete("/{value_id}")
def delete_value(value_id: int):
    return Response(status_code=status.HTTP_200_OK)
