from fastapi import APIRouter, HTTPException, Depends
from typing import List, Optional
from pydantic import BaseModel
from core.scheduler import ScheduledTask, TaskResult
from shared.state import AgentServices, get_services

router = APIRouter(prefix="/cron", tags=["Scheduler"])

class CreateJobRequest(BaseModel):
    name: str
    cron: str
    command: str
    description: str = ""

class UpdateJobRequest(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    cron: Optional[str] = None
    command: Optional[str] = None
    is_active: Optional[bool] = None

@router.get("/jobs", response_model=List[ScheduledTask])
async def list_jobs(services: AgentServices = Depends(get_services)):
    """List all scheduled tasks."""
    return services.scheduler.list_tasks()

@router.post("/jobs", response_model=ScheduledTask)
async def create_job(request: CreateJobRequest, services: AgentServices = Depends(get_services)):
    """Create a new scheduled task."""
    return services.scheduler.create_task(
        name=request.name,
        description=request.description,
        cron_expression=request.cron,
        command=request.command,
    )

@router.get("/jobs/{job_id}", response_model=ScheduledTask)
async def get_job(job_id: str, services: AgentServices = Depends(get_services)):
    task = services.scheduler.get_task(job_id)
    if task is None:
        raise HTTPException(status_code=404, detail="Job not found")
    return task

@router.patch("/jobs/{job_id}", response_model=ScheduledTask)
async def update_job(job_id: str, request: UpdateJobRequest, services: AgentServices = Depends(get_services)):
    """Edit a task; changing the interval recomputes its next run from now."""
    changes = request.model_dump(exclude_none=True)
    if "cron" in changes:
        changes["cron_expression"] = changes.pop("cron")
    task = services.scheduler.update_task(job_id, changes)
    if task is None:
        raise HTTPException(status_code=404, detail="Job not found")
    return task

@router.post("/jobs/{job_id}/toggle", response_model=ScheduledTask)
async def toggle_job(job_id: str, services: AgentServices = Depends(get_services)):
    """Pause an active task or resume a paused one."""
    task = services.scheduler.toggle_task(job_id)
    if task is None:
        raise HTTPException(status_code=404, detail="Job not found")
    return task

@router.post("/jobs/{job_id}/trigger")
async def trigger_job(job_id: str, services: AgentServices = Depends(get_services)):
    """Force run a job immediately."""
    if services.scheduler.get_task(job_id) is None:
        raise HTTPException(status_code=404, detail="Job not found")
    result = services.scheduler.execute_task(job_id)
    if result is None:
        return {"status": "skipped", "id": job_id}
    return {"status": "triggered", "id": job_id, "result": result.model_dump(mode="json")}

@router.get("/jobs/{job_id}/results", response_model=List[TaskResult])
async def job_results(job_id: str, services: AgentServices = Depends(get_services)):
    """Most recent runs, oldest first."""
    return services.scheduler.get_task_results(job_id)

@router.delete("/jobs/{job_id}")
async def delete_job(job_id: str, services: AgentServices = Depends(get_services)):
    """Delete a scheduled task."""
    if not services.scheduler.delete_task(job_id):
        raise HTTPException(status_code=404, detail="Job not found")
    return {"status": "deleted", "id": job_id}
